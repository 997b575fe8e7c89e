"""
Response Formatter

Renders the tool results of a run as a short chat reply. Successful
mutations are phrased per intent; list/search results are always shown as
an event listing; failures become error lines. Lines keep result order.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ...ai.tool_call_parser import (
    INTENT_CREATE,
    INTENT_DELETE,
    INTENT_EDIT,
    INTENT_OTHER,
    INTENT_QUERY,
)
from ...tools.calendar.catalog import CalendarToolNames
from ...tools.calendar.models import ToolCall, ToolResult

NO_ACTION_MESSAGE = "I couldn't process your request."
DEFAULT_SUCCESS_MESSAGE = "Operation completed."

READ_TOOLS = (CalendarToolNames.LIST_EVENTS, CalendarToolNames.SEARCH_EVENTS)

SUCCESS_PREFIXES = {
    INTENT_CREATE: "✅ Event created: ",
    INTENT_EDIT: "✅ Event updated: ",
    INTENT_DELETE: "✅ Event deleted: ",
}


class ResponseFormatter:
    """Formats tool results into the final user-facing reply"""

    def __init__(self, time_format: str = "%a %d %b %H:%M"):
        self.time_format = time_format

    def format(self, intent: Optional[str], results: List[ToolResult]) -> str:
        """
        Args:
            intent: Run intent (create_event, edit_event, delete_event, query_events, other)
            results: Tool results in execution order

        Returns:
            Newline-joined reply; never empty
        """
        if not results:
            return NO_ACTION_MESSAGE

        lines = [self._format_result(intent or INTENT_OTHER, result) for result in results]
        return "\n".join(line for line in lines if line) or DEFAULT_SUCCESS_MESSAGE

    def _format_result(self, intent: str, result: ToolResult) -> str:
        if not result.success:
            return f"❌ Error: {result.error or 'unknown error'}"

        data: Dict[str, Any] = result.data if isinstance(result.data, dict) else {}

        if result.source_call.name in READ_TOOLS:
            return self._format_events(data)

        prefix = SUCCESS_PREFIXES.get(intent)
        if prefix and data.get("title"):
            return prefix + str(data["title"])
        return "✅ " + (data.get("message") or DEFAULT_SUCCESS_MESSAGE)

    def _format_events(self, data: Dict[str, Any]) -> str:
        events = data.get("events") or []
        if not events:
            return "📅 No events found"

        lines = [f"📅 Found {data.get('count', len(events))} event(s):"]
        for event in events:
            lines.append(f"• {event.get('title') or '(untitled)'} - {self._display_time(event.get('start'))}")
        return "\n".join(lines)

    def _display_time(self, value: Optional[str]) -> str:
        if not value:
            return "time TBD"
        try:
            return datetime.fromisoformat(value).strftime(self.time_format)
        except ValueError:
            return value


def infer_intent(calls: Iterable[ToolCall]) -> str:
    """
    Derive the run intent from executed tool calls.

    A delete followed by a create (a move) counts as an edit.
    """
    names = {call.name for call in calls}
    creates = CalendarToolNames.CREATE_EVENT in names
    deletes = CalendarToolNames.DELETE_EVENT in names

    if CalendarToolNames.UPDATE_EVENT in names or (creates and deletes):
        return INTENT_EDIT
    if deletes:
        return INTENT_DELETE
    if creates:
        return INTENT_CREATE
    if names & set(READ_TOOLS):
        return INTENT_QUERY
    return INTENT_OTHER
