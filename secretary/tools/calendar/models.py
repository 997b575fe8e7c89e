"""
Calendar Tool Models

Value types that travel between the model, the executor and the calendar
store: tool calls, tool results, calendar events and store replies.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ToolCall:
    """A validated tool invocation requested by the model"""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": dict(self.arguments)}


@dataclass(frozen=True)
class RejectedCall:
    """Diagnostic record for a candidate call dropped by validation"""
    index: int
    name: Optional[str]
    reason: str
    id: Optional[str] = None
    raw: Any = None


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of executing one ToolCall.

    Exactly one of ``data`` / ``error`` is meaningful, selected by ``success``.
    """
    success: bool
    source_call: ToolCall
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, call: ToolCall, data: Any) -> "ToolResult":
        return cls(success=True, source_call=call, data=data)

    @classmethod
    def failure(cls, call: ToolCall, error: str) -> "ToolResult":
        return cls(success=False, source_call=call, error=error)

    def to_payload(self) -> Dict[str, Any]:
        """Serializable form appended to the conversation as a tool turn"""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


@dataclass
class CalendarEvent:
    """
    Transient copy of an event owned by the calendar store.

    ``start``/``end`` are timezone-aware datetimes.
    """
    id: str
    title: str
    start: datetime
    end: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "location": self.location or "",
            "description": self.description or "",
            "link": self.link or "",
        }


@dataclass
class EventDraft:
    """Fields for a new event (or a patch when used with update)"""
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None

    def changed_fields(self) -> List[str]:
        return [name for name in ("title", "start", "end", "location", "description")
                if getattr(self, name) is not None]


@dataclass
class StoreResponse:
    """Uniform reply from a calendar store mutation"""
    success: bool
    id: Optional[str] = None
    link: Optional[str] = None
    error: Optional[str] = None
    event: Optional[CalendarEvent] = None
