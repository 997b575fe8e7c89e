"""
Date/Time Resolver - canonicalizes natural-language date/time expressions

Turns the expressions a model writes into tool arguments ("tomorrow at 2pm",
"friday", "next week", "2026-10-20T14:00:00+03:00", "3:00 PM") into
timezone-qualified instants in the operating timezone.

Resolution order:
1. Fixed vocabulary (today, tonight, tomorrow, yesterday, weekday names,
   this/next week, this/next month), with an optional embedded clock time
2. Absolute parsing of the whole string (python-dateutil)
3. Fallback to the current instant, flagged and logged (or an
   UnparseableDateError when the resolver is strict)

Keyword arithmetic works on naive wall-clock datetimes; pytz attaches the
offset at the end so DST transitions come from the timezone database.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

import pytz
from dateutil import parser as date_parser

from ...core.exceptions import UnparseableDateError
from ..logger import setup_logger
from .datetime_helpers import (
    days_until_weekday,
    first_of_next_month,
    month_bounds,
    normalize_datetime_end,
    normalize_datetime_start,
    week_bounds,
)

logger = setup_logger(__name__)


WEEKDAYS = {
    'monday': 0, 'mon': 0,
    'tuesday': 1, 'tue': 1, 'tues': 1,
    'wednesday': 2, 'wed': 2,
    'thursday': 3, 'thu': 3, 'thur': 3, 'thurs': 3,
    'friday': 4, 'fri': 4,
    'saturday': 5, 'sat': 5,
    'sunday': 6, 'sun': 6
}

TONIGHT_DEFAULT_HOUR = 19
DEFAULT_RANGE_DAYS = 7

CLOCK_12H_PATTERN = re.compile(r'\b(\d{1,2})(?::(\d{2}))?\s?(am|pm)\b')
CLOCK_24H_PATTERN = re.compile(r'\b([01]?\d|2[0-3]):([0-5]\d)\b')
WEEKDAY_PATTERN = re.compile(
    r'\b(next\s+)?(' + '|'.join(sorted(WEEKDAYS, key=len, reverse=True)) + r')\b'
)
PERIOD_PATTERN = re.compile(r'\b(this|next|last)\s+(week|month)\b')
TIME_COMPONENT_PATTERN = re.compile(r'\d{1,2}:\d{2}|\d\s?(am|pm)\b|T\d{2}', re.IGNORECASE)
MONTH_NAME = r'(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)'
EXPLICIT_DATE_PATTERN = re.compile(
    r'\b(?:' + MONTH_NAME + r'\.?\s+\d{1,2}(?:st|nd|rd|th)?\b'
    r'|\d{1,2}(?:st|nd|rd|th)?\s+(?:of\s+)?' + MONTH_NAME + r'\b'
    r'|\d{4}-\d{1,2}-\d{1,2}'
    r'|\d{1,2}/\d{1,2}(?:/\d{2,4})?\b)',
    re.IGNORECASE
)


@dataclass(frozen=True)
class ResolvedInstant:
    """
    A timezone-qualified instant produced from a date/time expression.

    Attributes:
        value: Timezone-aware datetime in the operating timezone
        expression: The original expression
        is_fallback: True when nothing matched and "now" was substituted
    """
    value: datetime
    expression: str
    is_fallback: bool = False

    def isoformat(self) -> str:
        """ISO-8601 with explicit UTC offset, e.g. 2026-10-19T14:00:00-04:00"""
        return self.value.isoformat()

    def __str__(self) -> str:
        return self.isoformat()


class DateTimeResolver:
    """
    Resolves date/time expressions in one fixed operating timezone.

    Args:
        timezone: IANA timezone name (e.g. "Asia/Jerusalem")
        strict: Raise UnparseableDateError instead of falling back to "now"
        clock: Optional callable returning the current aware datetime (tests)
    """

    def __init__(
        self,
        timezone: str,
        strict: bool = False,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.timezone_name = timezone
        self.tz = pytz.timezone(timezone)
        self.strict = strict
        self._clock = clock or (lambda: datetime.now(pytz.UTC))

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Current instant in the operating timezone, truncated to seconds."""
        current = self._clock()
        if current.tzinfo is None:
            current = pytz.UTC.localize(current)
        return current.astimezone(self.tz).replace(microsecond=0)

    def prompt_context(self) -> dict:
        """Today's date and the current time, for grounding relative dates in prompts."""
        now = self.now()
        return {
            "today": now.strftime("%Y-%m-%d"),
            "weekday": now.strftime("%A"),
            "now": now.strftime("%H:%M"),
            "utc_offset": now.strftime("%z")[:3] + ":" + now.strftime("%z")[3:],
            "timezone": self.timezone_name,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, expression: Optional[str], end_of_day: bool = False) -> ResolvedInstant:
        """
        Resolve one expression to an instant.

        Args:
            expression: Natural-language or absolute date/time
            end_of_day: Use the end of the day/period when no clock time is given
                (range termini such as a list end_date)

        Returns:
            ResolvedInstant in the operating timezone

        Raises:
            UnparseableDateError: Only in strict mode, after every rule failed
        """
        text = (expression or "").strip()
        local_now = self.now().replace(tzinfo=None)

        explicit = self._resolve_explicit(text, local_now, end_of_day)
        if explicit is not None:
            return ResolvedInstant(explicit, text)

        naive = self._resolve_keyword(text.lower(), local_now, end_of_day)
        if naive is not None:
            return ResolvedInstant(self._localize(naive), text)

        absolute = self._parse_absolute(text, local_now, end_of_day)
        if absolute is not None:
            return ResolvedInstant(absolute, text)

        if self.strict:
            raise UnparseableDateError(text)

        fallback = self.now()
        logger.warning(
            f"[DateTimeResolver] Could not parse '{text}', using current time {fallback.isoformat()}"
        )
        return ResolvedInstant(fallback, text, is_fallback=True)

    def resolve_range(self, expression: Optional[str]) -> Tuple[ResolvedInstant, ResolvedInstant]:
        """
        Resolve a date-range expression ("today", "this week", "next month", "friday").

        Unknown expressions cover the next seven days starting now.

        Returns:
            (start, end) instants
        """
        text = (expression or "").strip()
        lowered = text.lower()
        local_now = self.now().replace(tzinfo=None)

        bounds = None
        explicit = self._resolve_explicit(text, local_now, end_of_day=False)
        if explicit is not None:
            day = explicit.replace(tzinfo=None)
            bounds = (normalize_datetime_start(day), normalize_datetime_end(day))

        if bounds is None:
            bounds = self._keyword_range(lowered, local_now)
        if bounds is None:
            absolute = self._parse_absolute(text, local_now, end_of_day=False) if text else None
            if absolute is not None:
                day = absolute.replace(tzinfo=None)
                bounds = (normalize_datetime_start(day), normalize_datetime_end(day))

        if bounds is None:
            logger.info(
                f"[DateTimeResolver] Unrecognised range '{text}', defaulting to next {DEFAULT_RANGE_DAYS} days"
            )
            start = self.now()
            return (
                ResolvedInstant(start, text, is_fallback=True),
                ResolvedInstant(start + timedelta(days=DEFAULT_RANGE_DAYS), text, is_fallback=True),
            )

        start, end = bounds
        return ResolvedInstant(self._localize(start), text), ResolvedInstant(self._localize(end), text)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _resolve_keyword(self, text: str, now: datetime, end_of_day: bool) -> Optional[datetime]:
        """Keyword vocabulary with an optional embedded clock time."""
        anchor, default_hour = self._keyword_anchor(text, now, end_of_day)
        if anchor is None:
            return None

        clock = self._extract_clock(text)
        if clock is not None:
            hour, minute = clock
            return anchor.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if default_hour is not None:
            return anchor.replace(hour=default_hour, minute=0, second=0, microsecond=0)
        if end_of_day:
            return normalize_datetime_end(anchor)
        return normalize_datetime_start(anchor)

    def _keyword_anchor(
        self,
        text: str,
        now: datetime,
        end_of_day: bool
    ) -> Tuple[Optional[datetime], Optional[int]]:
        """
        Find the calendar day a keyword refers to.

        Returns:
            (day, default_hour) where default_hour is set for "tonight"
        """
        if re.search(r'\btomorrow\b', text):
            return now + timedelta(days=1), None
        if re.search(r'\byesterday\b', text):
            return now - timedelta(days=1), None
        if re.search(r'\btonight\b', text):
            return now, TONIGHT_DEFAULT_HOUR
        if re.search(r'\btoday\b', text):
            return now, None

        period = PERIOD_PATTERN.search(text)
        if period:
            start, end = self._period_bounds(period.group(1), period.group(2), now)
            return (end if end_of_day else start), None

        weekday = WEEKDAY_PATTERN.search(text)
        if weekday:
            days_ahead = days_until_weekday(
                now.weekday(),
                WEEKDAYS[weekday.group(2)],
                skip_to_next_week=bool(weekday.group(1))
            )
            return now + timedelta(days=days_ahead), None

        return None, None

    def _keyword_range(self, text: str, now: datetime) -> Optional[Tuple[datetime, datetime]]:
        """Day or period bounds for a range keyword."""
        period = PERIOD_PATTERN.search(text)
        if period:
            return self._period_bounds(period.group(1), period.group(2), now)

        anchor, _ = self._keyword_anchor(text, now, end_of_day=False)
        if anchor is None:
            return None
        return normalize_datetime_start(anchor), normalize_datetime_end(anchor)

    @staticmethod
    def _period_bounds(which: str, unit: str, now: datetime) -> Tuple[datetime, datetime]:
        """Bounds of this/next/last week (Monday-Sunday) or month."""
        if unit == 'week':
            offset = {'this': 0, 'next': 1, 'last': -1}[which]
            return week_bounds(now + timedelta(weeks=offset))

        if which == 'next':
            return month_bounds(first_of_next_month(now))
        if which == 'last':
            return month_bounds(now.replace(day=1) - timedelta(days=1))
        return month_bounds(now)

    @staticmethod
    def _extract_clock(text: str) -> Optional[Tuple[int, int]]:
        """
        Extract an (hour, minute) clock time from "2pm", "2:30 pm" or "14:00".
        """
        match = CLOCK_12H_PATTERN.search(text)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2) or 0)
            period = match.group(3)
            if not 1 <= hour <= 12 or minute > 59:
                logger.debug(f"[DateTimeResolver] Ignoring invalid clock time '{match.group(0)}'")
                return None
            if period == 'pm' and hour != 12:
                hour += 12
            elif period == 'am' and hour == 12:
                hour = 0
            return hour, minute

        match = CLOCK_24H_PATTERN.search(text)
        if match:
            return int(match.group(1)), int(match.group(2))

        return None

    def _resolve_explicit(self, text: str, now: datetime, end_of_day: bool) -> Optional[datetime]:
        """A calendar date written out in full wins over any weekday name next to it."""
        if not EXPLICIT_DATE_PATTERN.search(text):
            return None

        parsed = self._parse_absolute(text, now, end_of_day)
        if parsed is None:
            return None

        weekday = WEEKDAY_PATTERN.search(text.lower())
        if weekday and WEEKDAYS[weekday.group(2)] != parsed.weekday():
            logger.warning(
                f"[DateTimeResolver] '{text}' names {weekday.group(2)} but "
                f"{parsed.date().isoformat()} is a {parsed.strftime('%A')}; using the date"
            )
        return parsed

    def _parse_absolute(self, text: str, now: datetime, end_of_day: bool) -> Optional[datetime]:
        """Parse an absolute date/time; naive results are read in the operating timezone."""
        if not text:
            return None

        try:
            parsed = date_parser.parse(text, default=normalize_datetime_start(now))
        except (ValueError, OverflowError) as e:
            logger.debug(f"[DateTimeResolver] Absolute parse failed for '{text}': {e}")
            return None

        if parsed.tzinfo is not None:
            return parsed.astimezone(self.tz).replace(microsecond=0)

        if end_of_day and not TIME_COMPONENT_PATTERN.search(text):
            parsed = normalize_datetime_end(parsed)
        return self._localize(parsed.replace(microsecond=0))

    def _localize(self, naive: datetime) -> datetime:
        """Attach the operating timezone's offset to a wall-clock datetime."""
        return self.tz.normalize(self.tz.localize(naive))


def resolve(
    expression: str,
    timezone: str,
    end_of_day: bool = False,
    now: Optional[datetime] = None
) -> ResolvedInstant:
    """
    Resolve a date/time expression in the given timezone.

    Convenience wrapper around DateTimeResolver for one-off calls.

    Example:
        >>> resolve("tomorrow at 2pm", "Asia/Jerusalem").isoformat()
        '2026-10-19T14:00:00+03:00'
    """
    clock = (lambda: now) if now is not None else None
    return DateTimeResolver(timezone, clock=clock).resolve(expression, end_of_day=end_of_day)
