"""
Prompt templates for AI operations
"""

from .calendar_prompts import (
    CALENDAR_SYSTEM_PROMPT,
    CALENDAR_JSON_MODE_INSTRUCTIONS,
    TOOL_RESULT_MESSAGE,
    USER_MESSAGE_TEMPLATE,
    build_calendar_system_prompt,
)

__all__ = [
    'CALENDAR_SYSTEM_PROMPT',
    'CALENDAR_JSON_MODE_INSTRUCTIONS',
    'TOOL_RESULT_MESSAGE',
    'USER_MESSAGE_TEMPLATE',
    'build_calendar_system_prompt',
]
