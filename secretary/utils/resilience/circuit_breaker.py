"""
Circuit breaker for the Google Calendar API

After CALENDAR_FAIL_MAX consecutive failures every calendar call is refused
with ServiceUnavailableError until CALENDAR_TIMEOUT seconds pass. A missing
event (404/410) is an answer, not an outage, and never counts as a failure.
"""
from functools import wraps
from typing import Callable

import pybreaker
from googleapiclient.errors import HttpError

from ..logger import setup_logger

logger = setup_logger(__name__)


class CircuitBreakerConfig:
    """Circuit breaker configuration constants"""

    SERVICE_NAME_CALENDAR = "Calendar API"

    CALENDAR_FAIL_MAX = 5  # consecutive failures before opening
    CALENDAR_TIMEOUT = 60  # seconds the circuit stays open
    NOT_FAILURE_STATUSES = (404, 410)


class ServiceUnavailableError(Exception):
    """The calendar circuit is open"""
    pass


def _is_missing_event(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and getattr(exc.resp, 'status', None) in CircuitBreakerConfig.NOT_FAILURE_STATUSES


class CalendarBreakerListener(pybreaker.CircuitBreakerListener):
    """Logs breaker transitions and counted failures"""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def state_change(self, cb, old_state, new_state):
        if new_state.name == pybreaker.STATE_OPEN:
            logger.error(
                f"[{self.service_name}] Circuit OPEN after {cb.fail_counter} failures; "
                f"refusing calls for {cb.reset_timeout}s"
            )
        else:
            logger.warning(f"[{self.service_name}] Circuit {old_state.name} -> {new_state.name}")

    def failure(self, cb, exc):
        logger.warning(f"[{self.service_name}] Failure {cb.fail_counter}/{cb.fail_max}: {exc}")


calendar_breaker = pybreaker.CircuitBreaker(
    fail_max=CircuitBreakerConfig.CALENDAR_FAIL_MAX,
    reset_timeout=CircuitBreakerConfig.CALENDAR_TIMEOUT,
    exclude=[_is_missing_event],
    listeners=[CalendarBreakerListener(CircuitBreakerConfig.SERVICE_NAME_CALENDAR)],
    name=CircuitBreakerConfig.SERVICE_NAME_CALENDAR
)


def with_calendar_circuit_breaker(breaker: pybreaker.CircuitBreaker = calendar_breaker) -> Callable:
    """
    Run a synchronous Calendar API call through ``breaker``.

    Raises:
        ServiceUnavailableError: When the circuit is open, including on the
            call that opens it
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return breaker.call(func, *args, **kwargs)
            except pybreaker.CircuitBreakerError as e:
                raise ServiceUnavailableError(
                    f"{breaker.name} is unavailable (circuit open), try again later"
                ) from e

        return wrapper
    return decorator


def reset_calendar_breaker() -> None:
    """Close the calendar breaker and clear its failure count"""
    calendar_breaker.close()
