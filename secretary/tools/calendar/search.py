"""
Calendar Search Module

Text matching and identifier lookup over events returned by the store.
"""
from typing import Iterable, List, Optional

from ...core.exceptions import EventNotFoundError
from .models import CalendarEvent


def matches(event: CalendarEvent, query: Optional[str]) -> bool:
    """
    Case-insensitive substring match on title and description only.

    An empty query matches every event.
    """
    if not query:
        return True
    needle = query.lower()
    return needle in (event.title or "").lower() or needle in (event.description or "").lower()


def filter_events(
    events: Iterable[CalendarEvent],
    query: Optional[str],
    max_results: Optional[int] = None
) -> List[CalendarEvent]:
    """Matching events in store order, truncated to ``max_results``"""
    found = [event for event in events if matches(event, query)]
    if max_results is not None and max_results >= 0:
        found = found[:max_results]
    return found


def find_event_by_identifier(
    events: List[CalendarEvent],
    identifier: str,
    window: Optional[str] = None
) -> CalendarEvent:
    """
    Resolve a human-readable identifier to one event.

    Exact id wins; otherwise the first event (chronologically) whose title
    contains the identifier, case-insensitively.

    Raises:
        EventNotFoundError: If nothing in ``events`` matches
    """
    for event in events:
        if event.id == identifier:
            return event

    needle = identifier.lower()
    for event in events:
        if needle in (event.title or "").lower():
            return event

    raise EventNotFoundError(identifier, window=window)
