"""
DateTime Helper Utilities

Centralized datetime manipulation functions
"""
import calendar
from datetime import datetime, timedelta
from typing import Tuple


def normalize_datetime_start(dt: datetime) -> datetime:
    """
    Normalize datetime to start of day (00:00:00.000000).

    Preserves timezone information.
    """
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def normalize_datetime_end(dt: datetime) -> datetime:
    """
    Normalize datetime to end of day (23:59:59).

    Preserves timezone information. Microseconds are dropped so the value
    serialises to a whole-second ISO timestamp.
    """
    return dt.replace(hour=23, minute=59, second=59, microsecond=0)


def days_until_weekday(
    current_weekday: int,
    target_weekday: int,
    skip_to_next_week: bool = False
) -> int:
    """
    Calculate days until target weekday.

    Args:
        current_weekday: Current day (0=Monday, 6=Sunday)
        target_weekday: Target day (0=Monday, 6=Sunday)
        skip_to_next_week: If True, "next Friday" means the Friday of next week

    Returns:
        Number of days until target weekday (0 when the target is today)
    """
    days_ahead = (target_weekday - current_weekday) % 7

    if skip_to_next_week:
        # "next Monday" is next week's Monday, never today
        days_ahead += 7

    return days_ahead


def week_bounds(day: datetime) -> Tuple[datetime, datetime]:
    """
    Monday 00:00 and Sunday 23:59:59 of the week containing ``day``.
    """
    start = normalize_datetime_start(day) - timedelta(days=day.weekday())
    end = normalize_datetime_end(start + timedelta(days=6))
    return start, end


def month_bounds(day: datetime) -> Tuple[datetime, datetime]:
    """
    First day 00:00 and last day 23:59:59 of the month containing ``day``.
    """
    _, last_day = calendar.monthrange(day.year, day.month)
    start = normalize_datetime_start(day).replace(day=1)
    end = normalize_datetime_end(day).replace(day=last_day)
    return start, end


def first_of_next_month(day: datetime) -> datetime:
    """First day of the month after ``day`` (time of day preserved)."""
    if day.month == 12:
        return day.replace(year=day.year + 1, month=1, day=1)
    return day.replace(month=day.month + 1, day=1)
