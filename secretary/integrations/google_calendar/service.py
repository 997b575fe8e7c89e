"""
Google Calendar Store

CalendarStore implementation backed by the Google Calendar v3 API.

The googleapiclient is synchronous, so every API call is a retry- and
circuit-breaker-protected method run on a worker thread. Missing events
(404/410) come back as ``StoreResponse(success=False, error="not found")``;
other API failures on mutations are reported in the response, and failures
while listing raise CalendarIntegrationException.
"""
import asyncio
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
from dateutil import parser as date_parser
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ...tools.calendar.models import CalendarEvent, EventDraft, StoreResponse
from ...tools.calendar.store import CalendarStore
from ...utils.config import CalendarConfig, Config, get_timezone
from ...utils.logger import setup_logger
from ...utils.resilience import (
    ServiceUnavailableError,
    retry_calendar_api,
    with_calendar_circuit_breaker,
)
from .exceptions import (
    AuthenticationException,
    ServiceUnavailableException,
    wrap_external_exception,
)

logger = setup_logger(__name__)

SERVICE_NAME = "GoogleCalendar"
SCOPES = ["https://www.googleapis.com/auth/calendar"]
NOT_FOUND_STATUSES = (404, 410)
PAGE_SIZE = 250


def load_credentials(config: CalendarConfig) -> Any:
    """
    Load Google credentials for the Calendar API.

    An authorized-user token (``token_path``) wins over a service-account
    key (``credentials_path``).

    Raises:
        AuthenticationException: When neither file yields credentials
    """
    if config.token_path and os.path.exists(config.token_path):
        logger.debug(f"[CALENDAR_STORE] Loading user credentials from {config.token_path}")
        return Credentials.from_authorized_user_file(config.token_path, SCOPES)

    if config.credentials_path and os.path.exists(config.credentials_path):
        with open(config.credentials_path, 'r') as f:
            info = json.load(f)
        if info.get("type") == "service_account":
            logger.debug(f"[CALENDAR_STORE] Loading service account from {config.credentials_path}")
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        raise AuthenticationException(
            f"{config.credentials_path} is not a service account key. "
            f"Provide an authorized-user token at {config.token_path}",
            service_name=SERVICE_NAME
        )

    raise AuthenticationException(
        f"No Google credentials found (looked for {config.token_path} and {config.credentials_path})",
        service_name=SERVICE_NAME
    )


class GoogleCalendarStore(CalendarStore):
    """
    Calendar store for one Google calendar.

    Args:
        config: Application configuration
        credentials: Google credentials (loaded from config when omitted)
        service: Pre-built Calendar API resource (used by tests)
    """

    def __init__(self, config: Config, credentials: Any = None, service: Any = None):
        self.config = config
        self.calendar_id = config.calendar.calendar_id
        self.timezone = get_timezone(config)
        self.tz = pytz.timezone(self.timezone)
        if service is None:
            service = build(
                'calendar', 'v3',
                credentials=credentials or load_credentials(config.calendar),
                cache_discovery=False
            )
        self.service = service
        logger.info(f"[CALENDAR_STORE] Using calendar '{self.calendar_id}' in {self.timezone}")

    # ========== Protected API Calls ==========

    @with_calendar_circuit_breaker()
    @retry_calendar_api()
    def _list_events_with_retry(
        self,
        time_min: str,
        time_max: str,
        page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        return self.service.events().list(
            calendarId=self.calendar_id,
            timeMin=time_min,
            timeMax=time_max,
            maxResults=PAGE_SIZE,
            singleEvents=True,
            orderBy='startTime',
            pageToken=page_token
        ).execute()

    @with_calendar_circuit_breaker()
    @retry_calendar_api()
    def _get_event_with_retry(self, event_id: str) -> Dict[str, Any]:
        return self.service.events().get(
            calendarId=self.calendar_id,
            eventId=event_id
        ).execute()

    @with_calendar_circuit_breaker()
    @retry_calendar_api()
    def _insert_event_with_retry(self, event_body: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.events().insert(
            calendarId=self.calendar_id,
            body=event_body
        ).execute()

    @with_calendar_circuit_breaker()
    @retry_calendar_api()
    def _patch_event_with_retry(self, event_id: str, event_body: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.events().patch(
            calendarId=self.calendar_id,
            eventId=event_id,
            body=event_body
        ).execute()

    @with_calendar_circuit_breaker()
    @retry_calendar_api()
    def _delete_event_with_retry(self, event_id: str) -> None:
        self.service.events().delete(
            calendarId=self.calendar_id,
            eventId=event_id
        ).execute()

    def _list_all(self, time_min: str, time_max: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page_token = None
        while True:
            page = self._list_events_with_retry(time_min, time_max, page_token)
            items.extend(page.get('items', []))
            page_token = page.get('nextPageToken')
            if not page_token:
                return items

    # ========== CalendarStore ==========

    async def get_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        try:
            items = await asyncio.to_thread(self._list_all, start.isoformat(), end.isoformat())
        except ServiceUnavailableError as e:
            raise ServiceUnavailableException(str(e), service_name=SERVICE_NAME, cause=e) from e
        except HttpError as e:
            raise wrap_external_exception(e, SERVICE_NAME, 'list_events') from e

        events = [self._to_event(item) for item in items if item.get('status') != 'cancelled']
        logger.debug(f"[CALENDAR_STORE] {len(events)} events between {start} and {end}")
        return events

    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        try:
            item = await asyncio.to_thread(self._get_event_with_retry, event_id)
        except HttpError as e:
            if _status(e) in NOT_FOUND_STATUSES:
                return None
            raise wrap_external_exception(e, SERVICE_NAME, 'get_event', {'event_id': event_id}) from e
        except ServiceUnavailableError as e:
            raise ServiceUnavailableException(str(e), service_name=SERVICE_NAME, cause=e) from e

        if item.get('status') == 'cancelled':
            return None
        return self._to_event(item)

    async def create_event(self, draft: EventDraft) -> StoreResponse:
        body = self._to_body(draft)
        try:
            created = await asyncio.to_thread(self._insert_event_with_retry, body)
        except (HttpError, ServiceUnavailableError) as e:
            return self._failure('create_event', e)

        logger.info(f"[CALENDAR_STORE] Created event {created.get('id')}: {draft.title}")
        return StoreResponse(
            success=True,
            id=created.get('id'),
            link=created.get('htmlLink'),
            event=self._to_event(created),
        )

    async def update_event(self, event_id: str, patch: EventDraft) -> StoreResponse:
        body = self._to_body(patch)
        try:
            updated = await asyncio.to_thread(self._patch_event_with_retry, event_id, body)
        except (HttpError, ServiceUnavailableError) as e:
            return self._failure('update_event', e, event_id)

        logger.info(f"[CALENDAR_STORE] Updated event {event_id}: {sorted(body)}")
        return StoreResponse(
            success=True,
            id=updated.get('id', event_id),
            link=updated.get('htmlLink'),
            event=self._to_event(updated),
        )

    async def delete_event(self, event_id: str) -> StoreResponse:
        try:
            await asyncio.to_thread(self._delete_event_with_retry, event_id)
        except (HttpError, ServiceUnavailableError) as e:
            return self._failure('delete_event', e, event_id)

        logger.info(f"[CALENDAR_STORE] Deleted event {event_id}")
        return StoreResponse(success=True, id=event_id)

    # ========== Conversion ==========

    def _to_body(self, draft: EventDraft) -> Dict[str, Any]:
        """Calendar API body holding only the fields set on the draft"""
        body: Dict[str, Any] = {}
        if draft.title is not None:
            body['summary'] = draft.title
        if draft.description is not None:
            body['description'] = draft.description
        if draft.location is not None:
            body['location'] = draft.location
        if draft.start is not None:
            body['start'] = {'dateTime': draft.start.isoformat(), 'timeZone': self.timezone}
        if draft.end is not None:
            body['end'] = {'dateTime': draft.end.isoformat(), 'timeZone': self.timezone}
        return body

    def _to_event(self, item: Dict[str, Any]) -> CalendarEvent:
        start = self._parse_time(item.get('start') or {})
        end = self._parse_time(item.get('end') or {}) or start
        return CalendarEvent(
            id=item.get('id', ''),
            title=item.get('summary') or '(No title)',
            start=start,
            end=end,
            location=item.get('location'),
            description=item.get('description'),
            link=item.get('htmlLink'),
        )

    def _parse_time(self, value: Dict[str, Any]) -> Optional[datetime]:
        """Parse a Calendar API ``start``/``end`` object; all-day dates become local midnight"""
        if value.get('dateTime'):
            parsed = date_parser.isoparse(value['dateTime'])
            if parsed.tzinfo is None:
                return self.tz.localize(parsed)
            return parsed.astimezone(self.tz)
        if value.get('date'):
            day = date_parser.isoparse(value['date'])
            return self.tz.localize(day.replace(hour=0, minute=0, second=0, microsecond=0))
        return None

    def _failure(self, operation: str, error: Exception, event_id: Optional[str] = None) -> StoreResponse:
        if isinstance(error, HttpError) and _status(error) in NOT_FOUND_STATUSES:
            logger.warning(f"[CALENDAR_STORE] {operation}: event {event_id} not found")
            return StoreResponse(success=False, id=event_id, error="not found")

        logger.error(f"[CALENDAR_STORE] {operation} failed: {error}")
        if isinstance(error, HttpError):
            message = f"Calendar API error {_status(error)}: {_reason(error)}"
        else:
            message = str(error)
        return StoreResponse(success=False, id=event_id, error=message)


def _status(error: HttpError) -> Optional[int]:
    return getattr(error.resp, 'status', None)


def _reason(error: HttpError) -> str:
    if hasattr(error, '_get_reason'):
        return error._get_reason()
    return str(error)
