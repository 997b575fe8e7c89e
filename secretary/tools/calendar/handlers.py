"""
Calendar Action Handlers

One coroutine per calendar tool. Handlers resolve every date/time argument
through the DateTimeResolver before touching the store, and report problems
by raising SecretaryError subclasses; the ToolExecutor turns those into
failed ToolResults.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from ...core.exceptions import ToolExecutionError, ToolValidationError
from ...utils.config import Config
from ...utils.datetime.resolver import DEFAULT_RANGE_DAYS, DateTimeResolver, ResolvedInstant
from ...utils.logger import setup_logger
from .dedup import DUPLICATE_EVENT_ERROR, RecentEventRegistry
from .models import CalendarEvent, EventDraft
from .search import filter_events, find_event_by_identifier
from .store import CalendarStore

logger = setup_logger(__name__)

UPDATABLE_FIELDS = ("title", "start_time", "end_time", "location", "description")


class CalendarActionHandlers:
    """
    Handles calendar list/create/update/delete/search operations.

    Args:
        store: Calendar store the handlers read from and write to
        resolver: Resolver bound to the operating timezone
        config: Application configuration (durations, windows, limits)
        recent_events: Optional duplicate-create guard
    """

    def __init__(
        self,
        store: CalendarStore,
        resolver: DateTimeResolver,
        config: Config,
        recent_events: Optional[RecentEventRegistry] = None
    ):
        self.store = store
        self.resolver = resolver
        self.config = config
        self.recent_events = recent_events
        self.default_duration = timedelta(minutes=config.calendar.default_event_duration)

    # ============================================
    # LIST
    # ============================================

    async def handle_list(self, args: Dict[str, Any]) -> Dict[str, Any]:
        start = self.resolver.resolve(args.get("start_date"))
        end = self.resolver.resolve(args.get("end_date"), end_of_day=True)

        if end.value < start.value:
            logger.warning(
                f"[CAL] end_date {end.isoformat()} is before start_date {start.isoformat()}, "
                f"using end of start day"
            )
            end = ResolvedInstant(
                self.resolver.tz.normalize(start.value.replace(hour=23, minute=59, second=59)),
                end.expression,
                end.is_fallback,
            )

        events = await self.store.get_events(start.value, end.value)
        events = filter_events(events, args.get("search_query"))
        logger.info(f"[CAL] Listed {len(events)} events between {start.isoformat()} and {end.isoformat()}")

        data = {
            "count": len(events),
            "events": [event.to_dict() for event in events],
            "start": start.isoformat(),
            "end": end.isoformat(),
        }
        return self._with_warnings(data, start, end)

    # ============================================
    # CREATE
    # ============================================

    async def handle_create(self, args: Dict[str, Any]) -> Dict[str, Any]:
        title = str(args.get("title") or "").strip()
        if not title:
            raise ToolValidationError("Please provide 'title' for create_calendar_event")

        start = self.resolver.resolve(args.get("start_time"))
        end_value = self._default_end(start.value, self.default_duration)
        end = None
        if args.get("end_time"):
            end = self.resolver.resolve(args["end_time"])
            if end.value > start.value:
                end_value = end.value
            else:
                logger.warning(
                    f"[CAL] end_time {end.isoformat()} is not after start {start.isoformat()}, "
                    f"using default duration"
                )

        if self.recent_events and self.recent_events.is_duplicate(title, start.value):
            raise ToolExecutionError(
                f"{DUPLICATE_EVENT_ERROR}: '{title}' at {start.isoformat()} was already created in the last "
                f"{self.config.processing.duplicate_event_window_minutes} minutes"
            )

        draft = EventDraft(
            title=title,
            start=start.value,
            end=end_value,
            location=args.get("location") or None,
            description=args.get("description") or None,
        )
        logger.info(f"[CAL] Creating event: {title} at {start.isoformat()} until {end_value.isoformat()}")
        response = await self.store.create_event(draft)
        if not response.success:
            raise ToolExecutionError(f"Failed to create event: {response.error or 'unknown error'}")

        if self.recent_events:
            self.recent_events.remember(title, start.value)

        data = {
            "event_id": response.id,
            "title": title,
            "start": start.isoformat(),
            "end": end_value.isoformat(),
            "link": response.link or "",
            "message": f"Created: {title}",
        }
        return self._with_warnings(data, start, *([end] if end else []))

    # ============================================
    # UPDATE
    # ============================================

    async def handle_update(self, args: Dict[str, Any]) -> Dict[str, Any]:
        updates = args.get("updates")
        if not isinstance(updates, dict):
            raise ToolValidationError("'updates' must be an object of fields to change")

        unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
        if unknown:
            logger.warning(f"[CAL] Ignoring unknown update fields: {unknown}")
        requested = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS and v not in (None, "")}
        if not requested:
            raise ToolValidationError(
                f"No fields to update. Supported fields: {', '.join(UPDATABLE_FIELDS)}"
            )

        event_id, event, window = await self._resolve_target(args)

        patch = EventDraft(
            title=requested.get("title"),
            location=requested.get("location"),
            description=requested.get("description"),
        )
        resolved: List[ResolvedInstant] = []

        if "start_time" in requested:
            start = self.resolver.resolve(requested["start_time"])
            resolved.append(start)
            patch.start = start.value
            duration = (event.end - event.start) if event else self.default_duration
            patch.end = self._default_end(start.value, duration)

        if "end_time" in requested:
            end = self.resolver.resolve(requested["end_time"])
            resolved.append(end)
            effective_start = patch.start or (event.start if event else None)
            if effective_start is not None and end.value <= effective_start:
                if patch.start is None:
                    raise ToolValidationError(
                        f"end_time {end.isoformat()} must be after the event start {effective_start.isoformat()}"
                    )
                logger.warning(f"[CAL] end_time {end.isoformat()} is not after new start, keeping duration")
            else:
                patch.end = end.value

        logger.info(f"[CAL] Updating event {event_id}: {patch.changed_fields()}")
        response = await self.store.update_event(event_id, patch)
        if not response.success:
            raise ToolExecutionError(f"Failed to update event {event_id}: {response.error or 'unknown error'}")

        title = patch.title or (event.title if event else None) or (
            response.event.title if response.event else event_id
        )
        data = {
            "event_id": event_id,
            "title": title,
            "updates": {name: self._serialize(getattr(patch, name)) for name in patch.changed_fields()},
            "link": response.link or "",
            "message": f"Updated: {title}",
        }
        return self._with_range_warning(self._with_warnings(data, *resolved), window)

    # ============================================
    # DELETE
    # ============================================

    async def handle_delete(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if not _confirmed(args.get("confirmation")):
            raise ToolExecutionError("Event deletion requires confirmation")

        event_id, event, window = await self._resolve_target(args)
        title = (event.title if event else None) or args.get("event_title") or event_id

        logger.info(f"[CAL] Deleting event {event_id} ({title})")
        response = await self.store.delete_event(event_id)
        if not response.success:
            raise ToolExecutionError(f"Failed to delete event {event_id}: {response.error or 'unknown error'}")

        data = {
            "event_id": event_id,
            "title": title,
            "message": f"Deleted: {title}",
        }
        return self._with_range_warning(data, window)

    # ============================================
    # SEARCH
    # ============================================

    async def handle_search(self, args: Dict[str, Any]) -> Dict[str, Any]:
        query = str(args.get("query") or "").strip()
        date_range = args.get("date_range") or self.config.calendar.search_window
        max_results = _as_positive_int(args.get("max_results"), self.config.calendar.default_max_results)

        start, end = self.resolver.resolve_range(date_range)
        events = await self.store.get_events(start.value, end.value)
        found = filter_events(events, query, max_results)
        logger.info(f"[CAL] Search '{query}' in {date_range}: {len(found)} of {len(events)} events")

        data = {
            "query": query,
            "date_range": date_range,
            "count": len(found),
            "events": [event.to_dict() for event in found],
        }
        return self._with_range_warning(data, start)

    # ============================================
    # HELPERS
    # ============================================

    async def _resolve_target(
        self,
        args: Dict[str, Any]
    ) -> Tuple[str, Optional[CalendarEvent], Optional[ResolvedInstant]]:
        """
        Identify the event an update/delete refers to.

        ``event_id`` is used as given. ``event_identifier`` is tried as an id
        first, then searched for in the configured recency window.

        Returns:
            (event id, event if known, start of the searched window or None)

        Raises:
            ToolValidationError: If neither field is present
            EventNotFoundError: If the identifier matches nothing
        """
        event_id = str(args.get("event_id") or "").strip()
        if event_id:
            return event_id, await self.store.get_event(event_id), None

        identifier = str(args.get("event_identifier") or "").strip()
        if not identifier:
            raise ToolValidationError("Provide 'event_id' or 'event_identifier'")

        direct = await self.store.get_event(identifier)
        if direct is not None:
            return direct.id, direct, None

        window = self.config.calendar.search_window
        start, end = self.resolver.resolve_range(window)
        events = await self.store.get_events(start.value, end.value)
        event = find_event_by_identifier(events, identifier, window=window)
        logger.info(f"[CAL] Resolved '{identifier}' to event {event.id} ({event.title})")
        return event.id, event, start

    def _default_end(self, start: datetime, duration: timedelta) -> datetime:
        if duration <= timedelta(0):
            duration = self.default_duration
        return self._shift(start, duration)

    def _shift(self, value: datetime, delta: timedelta) -> datetime:
        """Add a wall-clock delta and re-normalize the offset across DST changes"""
        return self.resolver.tz.normalize(value + delta)

    @staticmethod
    def _serialize(value: Any) -> Any:
        return value.isoformat() if isinstance(value, datetime) else value

    @staticmethod
    def _with_warnings(data: Dict[str, Any], *instants: ResolvedInstant) -> Dict[str, Any]:
        fallbacks = [i.expression for i in instants if i.is_fallback]
        if fallbacks:
            data.setdefault("warnings", []).extend(
                f"Could not understand '{expression}', used the current time instead"
                for expression in fallbacks
            )
        return data

    @staticmethod
    def _with_range_warning(data: Dict[str, Any], window: Optional[ResolvedInstant]) -> Dict[str, Any]:
        if window is not None and window.is_fallback:
            data.setdefault("warnings", []).append(
                f"Could not understand date range '{window.expression}', "
                f"used the next {DEFAULT_RANGE_DAYS} days instead"
            )
        return data


def _confirmed(value: Any) -> bool:
    """Deletion is confirmed unless the model explicitly says otherwise"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no")
    return bool(value)


def _as_positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default
