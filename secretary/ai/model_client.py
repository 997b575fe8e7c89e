"""
Model clients for the conversation orchestrator

Wrap a LangChain chat model behind one async call that takes the running
conversation and returns a ModelReply.

- ToolCallingModelClient: catalog tools bound with ``bind_tools``; the
  provider returns structured tool calls
- JsonPromptModelClient: no binding; the model writes a JSON payload that
  the ToolCallParser extracts

Provider failures are raised as TransportError so the orchestrator can
retry them.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from ..core.exceptions import TransportError
from ..tools.calendar.catalog import CapabilityCatalog
from ..utils.logger import setup_logger
from .conversation import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL, ROLE_USER, ConversationTurn
from .llm_constants import TOOL_MODE_JSON, TOOL_MODE_NATIVE
from .prompts import TOOL_RESULT_MESSAGE

logger = setup_logger(__name__)


@dataclass
class ModelReply:
    """
    One assistant reply.

    Attributes:
        text: Free text of the reply
        tool_calls: Provider-native tool-call candidates (``{"id", "name",
            "arguments"}``); always empty in JSON mode
        raw: The provider message, for debugging
    """
    text: str = ""
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    raw: Any = None


class ModelClient(ABC):
    """Async chat-model interface used by the orchestrator"""

    mode: str = TOOL_MODE_NATIVE

    @abstractmethod
    async def complete(self, turns: List[ConversationTurn]) -> ModelReply:
        """
        Send the conversation and return the assistant's reply.

        Raises:
            TransportError: When the provider cannot be reached or fails
        """


class LangChainModelClient(ModelClient):
    """Shared conversion and error handling for LangChain chat models"""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    @property
    def runnable(self) -> Any:
        return self.llm

    async def complete(self, turns: List[ConversationTurn]) -> ModelReply:
        messages = self.to_messages(turns)
        try:
            message = await self.runnable.ainvoke(messages)
        except (TransportError, asyncio.TimeoutError):
            raise
        except Exception as e:
            logger.error(f"[{type(self).__name__}] Model call failed: {type(e).__name__}: {e}")
            raise TransportError(f"Model call failed: {e}", details={"error_type": type(e).__name__}) from e

        return self.to_reply(message)

    def to_messages(self, turns: List[ConversationTurn]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        for turn in turns:
            if turn.role == ROLE_SYSTEM:
                messages.append(SystemMessage(content=turn.content))
            elif turn.role == ROLE_USER:
                messages.append(HumanMessage(content=turn.content))
            elif turn.role == ROLE_ASSISTANT:
                messages.append(self._assistant_message(turn))
            elif turn.role == ROLE_TOOL:
                messages.append(self._tool_message(turn))
            else:
                raise ValueError(f"Unknown conversation role: {turn.role}")
        return messages

    def to_reply(self, message: Any) -> ModelReply:
        return ModelReply(text=message_text(message), raw=message)

    def _assistant_message(self, turn: ConversationTurn) -> BaseMessage:
        return AIMessage(content=turn.content)

    def _tool_message(self, turn: ConversationTurn) -> BaseMessage:
        return ToolMessage(content=turn.content, tool_call_id=turn.tool_call_id or "", name=turn.name)


class ToolCallingModelClient(LangChainModelClient):
    """Native tool calling: the catalog is bound to the chat model"""

    mode = TOOL_MODE_NATIVE

    def __init__(self, llm: BaseChatModel, catalog: CapabilityCatalog):
        super().__init__(llm)
        self.catalog = catalog
        self._bound = llm.bind_tools(catalog.to_model_tools(), tool_choice="auto")

    @property
    def runnable(self) -> Any:
        return self._bound

    def to_reply(self, message: Any) -> ModelReply:
        candidates = [
            {"id": call.get("id"), "name": call.get("name"), "arguments": call.get("args")}
            for call in getattr(message, "tool_calls", None) or []
        ]
        # Calls the provider could not decode still need validating and an answering tool turn
        for call in getattr(message, "invalid_tool_calls", None) or []:
            logger.warning(f"[ToolCallingModelClient] Provider flagged invalid tool call: {call.get('error')}")
            candidates.append({"id": call.get("id"), "name": call.get("name"), "arguments": call.get("args")})

        return ModelReply(text=message_text(message), tool_calls=candidates, raw=message)

    def _assistant_message(self, turn: ConversationTurn) -> BaseMessage:
        tool_calls = [
            {
                "id": call["id"],
                "name": call["name"] or "unknown_tool",
                "args": call["arguments"] if isinstance(call.get("arguments"), dict) else {},
                "type": "tool_call",
            }
            for call in turn.tool_calls
        ]
        return AIMessage(content=turn.content, tool_calls=tool_calls)


class JsonPromptModelClient(LangChainModelClient):
    """
    Prompted JSON mode for models without native tool calling.

    Tool results are sent back as user messages, since the provider never
    issued tool-call ids.
    """

    mode = TOOL_MODE_JSON

    def _tool_message(self, turn: ConversationTurn) -> BaseMessage:
        return HumanMessage(content=TOOL_RESULT_MESSAGE.format(
            name=turn.name or "tool",
            call_id=turn.tool_call_id or "",
            payload=turn.content,
        ))


def message_text(message: Any) -> str:
    """Plain text of a chat message whose content may be a list of parts"""
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content)


def create_model_client(
    llm: BaseChatModel,
    catalog: CapabilityCatalog,
    mode: Optional[str] = None
) -> ModelClient:
    """
    Build the client for a tool mode ("native" or "json").

    Raises:
        ValueError: For an unknown mode
    """
    mode = (mode or TOOL_MODE_NATIVE).lower()
    if mode == TOOL_MODE_NATIVE:
        return ToolCallingModelClient(llm, catalog)
    if mode == TOOL_MODE_JSON:
        return JsonPromptModelClient(llm)
    raise ValueError(f"Unknown tool mode '{mode}'. Use '{TOOL_MODE_NATIVE}' or '{TOOL_MODE_JSON}'")
