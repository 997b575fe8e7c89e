"""
Date/time utilities - resolving natural-language expressions to instants
"""
from .datetime_helpers import (
    normalize_datetime_start,
    normalize_datetime_end,
    days_until_weekday,
    week_bounds,
    month_bounds,
)
from .resolver import DateTimeResolver, ResolvedInstant, resolve, WEEKDAYS

__all__ = [
    'normalize_datetime_start',
    'normalize_datetime_end',
    'days_until_weekday',
    'week_bounds',
    'month_bounds',
    'DateTimeResolver',
    'ResolvedInstant',
    'resolve',
    'WEEKDAYS',
]
