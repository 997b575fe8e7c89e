"""
Search-before-mutate guard

Optional per-run check that update/delete calls only target events the run
has already seen in a successful list or search result.
"""
from typing import Optional, Set

from ...tools.calendar.catalog import CalendarToolNames
from ...tools.calendar.models import ToolCall, ToolResult

MUTATING_TOOLS = (CalendarToolNames.UPDATE_EVENT, CalendarToolNames.DELETE_EVENT)
READ_TOOLS = (CalendarToolNames.LIST_EVENTS, CalendarToolNames.SEARCH_EVENTS)


class MutationOrderGuard:
    """
    Tracks event ids returned by list/search within one run.

    Args:
        enabled: When False every call is allowed
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self.has_searched = False
        self.seen_ids: Set[str] = set()

    def check(self, call: ToolCall) -> Optional[str]:
        """
        Returns:
            Reason the call must not run, or None when it may run
        """
        if not self.enabled or call.name not in MUTATING_TOOLS:
            return None

        if not self.has_searched:
            return (
                f"{call.name} was issued before any successful list_calendar_events or "
                f"search_calendar_events call. Search for the event first."
            )

        event_id = call.arguments.get("event_id")
        if event_id and str(event_id) not in self.seen_ids:
            return f"Event id '{event_id}' was not returned by any search in this conversation"

        return None

    def observe(self, result: ToolResult) -> None:
        """Record ids from successful reads; forget ids that were deleted"""
        if not result.success or not isinstance(result.data, dict):
            return

        name = result.source_call.name
        if name in READ_TOOLS:
            self.has_searched = True
            for event in result.data.get("events") or []:
                if event.get("id"):
                    self.seen_ids.add(str(event["id"]))
        elif name == CalendarToolNames.DELETE_EVENT:
            self.seen_ids.discard(str(result.data.get("event_id")))
