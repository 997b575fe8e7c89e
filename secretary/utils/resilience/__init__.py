"""
Resilience utilities - retry and circuit breaker helpers
"""
from .retry import (
    RetryConfig,
    is_retryable_http_error,
    retry_calendar_api,
    model_call_retrying,
)
from .circuit_breaker import (
    CircuitBreakerConfig,
    ServiceUnavailableError,
    calendar_breaker,
    with_calendar_circuit_breaker,
    reset_calendar_breaker,
)

__all__ = [
    "RetryConfig",
    "is_retryable_http_error",
    "retry_calendar_api",
    "model_call_retrying",
    "CircuitBreakerConfig",
    "ServiceUnavailableError",
    "calendar_breaker",
    "with_calendar_circuit_breaker",
    "reset_calendar_breaker",
]
