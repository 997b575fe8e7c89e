"""
Google Calendar-specific exceptions

All of them derive from ToolExecutionError, so the tool executor turns a
failing Calendar API call into a failed tool result instead of ending the run.
"""
import traceback
from typing import Any, Dict, Optional

from ...core.exceptions import ToolExecutionError


def wrap_external_exception(
    exc: Exception,
    service_name: str,
    operation: str,
    details: Optional[Dict[str, Any]] = None
) -> 'CalendarServiceException':
    """
    Wrap an external exception into a CalendarIntegrationException with context.

    Args:
        exc: The original exception to wrap
        service_name: Name of the service where error occurred
        operation: The operation that failed
        details: Optional additional details

    Returns:
        CalendarIntegrationException with full context
    """
    error_details = dict(details or {})
    error_details.update({
        'operation': operation,
        'original_error': str(exc),
        'error_type': type(exc).__name__,
        'traceback': traceback.format_exc()
    })
    status = getattr(getattr(exc, 'resp', None), 'status', None)
    if status is not None:
        error_details['http_status'] = status

    return CalendarIntegrationException(
        message=f"{service_name} operation '{operation}' failed: {exc}",
        service_name=service_name,
        details=error_details,
        cause=exc
    )


class CalendarServiceException(ToolExecutionError):
    """Exception for calendar store operations"""

    def __init__(
        self,
        message: str,
        service_name: str = "GoogleCalendar",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, details=details)
        self.service_name = service_name
        self.cause = cause


class CalendarIntegrationException(CalendarServiceException):
    """A Calendar API call failed"""
    pass


class ServiceUnavailableException(CalendarServiceException):
    """The Calendar API circuit breaker is open"""
    pass


class AuthenticationException(CalendarServiceException):
    """No usable Google credentials"""
    pass
