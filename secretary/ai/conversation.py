"""
Conversation turns for one orchestration run
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"


@dataclass(frozen=True)
class ConversationTurn:
    """
    One message in the running conversation.

    Assistant turns carry the tool calls the model emitted (as
    ``{"id", "name", "arguments"}`` dicts); tool turns carry the id of the
    call they answer.
    """
    role: str
    content: str = ""
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None


class Conversation:
    """Append-only, ordered list of turns"""

    def __init__(self):
        self._turns: List[ConversationTurn] = []

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def add_system(self, content: str) -> None:
        self.append(ConversationTurn(ROLE_SYSTEM, content))

    def add_user(self, content: str) -> None:
        self.append(ConversationTurn(ROLE_USER, content))

    def add_assistant(self, content: str, tool_calls: Optional[List[Dict[str, Any]]] = None) -> None:
        self.append(ConversationTurn(ROLE_ASSISTANT, content, tool_calls=list(tool_calls or [])))

    def add_tool_result(self, call_id: str, name: Optional[str], payload: Dict[str, Any]) -> None:
        self.append(ConversationTurn(
            ROLE_TOOL,
            json.dumps(payload, default=str),
            tool_call_id=call_id,
            name=name,
        ))

    @property
    def turns(self) -> List[ConversationTurn]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(list(self._turns))
