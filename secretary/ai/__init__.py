"""
AI module - model clients, prompts and tool-call extraction
"""
from .conversation import Conversation, ConversationTurn
from .tool_call_parser import ParsedResponse, ToolCallParser, VALID_INTENTS
from .model_client import (
    ModelClient,
    ModelReply,
    ToolCallingModelClient,
    JsonPromptModelClient,
    create_model_client,
)

__all__ = [
    'Conversation',
    'ConversationTurn',
    'ParsedResponse',
    'ToolCallParser',
    'VALID_INTENTS',
    'ModelClient',
    'ModelReply',
    'ToolCallingModelClient',
    'JsonPromptModelClient',
    'create_model_client',
]
