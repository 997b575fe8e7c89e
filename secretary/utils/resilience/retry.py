"""
Retry policies

- Calendar API: exponential backoff on rate limits and 5xx responses
- Language model: linear backoff on TransportError and timeouts, where
  ``max_attempts`` counts every attempt including the first
"""
import asyncio
import logging
from functools import wraps
from typing import Callable

from googleapiclient.errors import HttpError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)

from ...core.exceptions import TransportError
from ..logger import setup_logger

logger = setup_logger(__name__)


class RetryConfig:
    """Retry configuration constants"""

    CALENDAR_MAX_ATTEMPTS = 5
    CALENDAR_MIN_WAIT = 1
    CALENDAR_MAX_WAIT = 60
    CALENDAR_MULTIPLIER = 2

    MODEL_MAX_ATTEMPTS = 3
    MODEL_BACKOFF_SECONDS = 1.0

    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_retryable_http_error(exception: BaseException) -> bool:
    """True for Calendar API rate limits (429) and server errors (500/502/503/504)"""
    if not isinstance(exception, HttpError):
        return False

    status_code = getattr(exception.resp, 'status', None)
    if status_code in RetryConfig.RETRYABLE_STATUS_CODES:
        logger.warning(f"[CALENDAR_API] HTTP {status_code}, will retry")
        return True
    return False


def retry_calendar_api(
    max_attempts: int = RetryConfig.CALENDAR_MAX_ATTEMPTS,
    min_wait: float = RetryConfig.CALENDAR_MIN_WAIT,
    max_wait: float = RetryConfig.CALENDAR_MAX_WAIT
) -> Callable:
    """
    Retry a synchronous Calendar API call.

    Non-retryable errors (400/401/403/404/410) propagate on the first
    attempt; the last retryable error is re-raised once attempts run out.

    Example:
        @retry_calendar_api(max_attempts=3)
        def _insert_event_with_retry(self, body):
            return self.service.events().insert(calendarId=..., body=body).execute()
    """
    def decorator(func: Callable) -> Callable:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=RetryConfig.CALENDAR_MULTIPLIER, min=min_wait, max=max_wait),
            retry=retry_if_exception(is_retryable_http_error),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True
        )
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger.debug(f"[CALENDAR_API] {func.__name__}")
            return func(*args, **kwargs)

        return wrapper
    return decorator


def model_call_retrying(
    max_attempts: int = RetryConfig.MODEL_MAX_ATTEMPTS,
    backoff_seconds: float = RetryConfig.MODEL_BACKOFF_SECONDS
) -> AsyncRetrying:
    """
    Async retry controller for model calls.

    Waits grow linearly (backoff, 2*backoff, ...). Any other exception
    propagates immediately.

    Example:
        async for attempt in model_call_retrying(3, 1.0):
            with attempt:
                reply = await model.complete(turns)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        retry=retry_if_exception_type((TransportError, asyncio.TimeoutError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
