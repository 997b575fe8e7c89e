"""
Calendar Store Interface

The async protocol the tool executor talks to, and an in-memory store used
for dry runs and tests. The Google Calendar implementation lives in
``secretary.integrations.google_calendar.service``.
"""
import itertools
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ...utils.logger import setup_logger
from .models import CalendarEvent, EventDraft, StoreResponse

logger = setup_logger(__name__)


class CalendarStore(ABC):
    """System of record for calendar events"""

    @abstractmethod
    async def get_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        """Events overlapping [start, end], ordered by start time"""

    @abstractmethod
    async def create_event(self, draft: EventDraft) -> StoreResponse:
        """Create an event; the response carries the new id and link"""

    @abstractmethod
    async def update_event(self, event_id: str, patch: EventDraft) -> StoreResponse:
        """Apply the non-empty fields of ``patch`` to an existing event"""

    @abstractmethod
    async def delete_event(self, event_id: str) -> StoreResponse:
        """Delete an event by id"""

    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        """Fetch a single event; stores without a direct lookup return None"""
        return None


class InMemoryCalendarStore(CalendarStore):
    """
    Process-local calendar store.

    Used by ``--dry-run`` and the test suite. Events are kept in a dict keyed
    by id; ids are sequential (``evt_1``, ``evt_2``, ...).
    """

    def __init__(self, events: Optional[List[CalendarEvent]] = None):
        self._events: Dict[str, CalendarEvent] = {}
        self._ids = itertools.count(1)
        for event in events or []:
            self._events[event.id] = event

    @property
    def events(self) -> List[CalendarEvent]:
        return sorted(self._events.values(), key=lambda e: e.start)

    async def get_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        matching = [e for e in self.events if e.start <= end and e.end >= start]
        logger.debug(f"[InMemoryCalendarStore] {len(matching)} events between {start} and {end}")
        return matching

    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        return self._events.get(event_id)

    async def create_event(self, draft: EventDraft) -> StoreResponse:
        if not draft.title or draft.start is None or draft.end is None:
            return StoreResponse(success=False, error="title, start and end are required")

        event_id = f"evt_{next(self._ids)}"
        while event_id in self._events:
            event_id = f"evt_{next(self._ids)}"

        event = CalendarEvent(
            id=event_id,
            title=draft.title,
            start=draft.start,
            end=draft.end,
            location=draft.location,
            description=draft.description,
            link=f"memory://events/{event_id}",
        )
        self._events[event_id] = event
        logger.info(f"[InMemoryCalendarStore] Created {event_id}: {event.title} at {event.start.isoformat()}")
        return StoreResponse(success=True, id=event_id, link=event.link, event=event)

    async def update_event(self, event_id: str, patch: EventDraft) -> StoreResponse:
        event = self._events.get(event_id)
        if event is None:
            return StoreResponse(success=False, id=event_id, error="not found")

        for name in patch.changed_fields():
            setattr(event, name, getattr(patch, name))
        logger.info(f"[InMemoryCalendarStore] Updated {event_id}: {patch.changed_fields()}")
        return StoreResponse(success=True, id=event_id, link=event.link, event=event)

    async def delete_event(self, event_id: str) -> StoreResponse:
        if self._events.pop(event_id, None) is None:
            return StoreResponse(success=False, id=event_id, error="not found")
        logger.info(f"[InMemoryCalendarStore] Deleted {event_id}")
        return StoreResponse(success=True, id=event_id)
