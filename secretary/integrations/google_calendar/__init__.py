"""
Google Calendar Integration Module

Provides the Google Calendar implementation of the CalendarStore protocol.

Architecture:
    ToolExecutor → CalendarActionHandlers → GoogleCalendarStore → Calendar API
"""

# Lazy imports so the in-memory store works without the Google client stack loaded
def __getattr__(name):
    if name == 'GoogleCalendarStore':
        from .service import GoogleCalendarStore
        return GoogleCalendarStore
    elif name == 'load_credentials':
        from .service import load_credentials
        return load_credentials
    elif name == 'CalendarServiceException':
        from .exceptions import CalendarServiceException
        return CalendarServiceException
    elif name == 'CalendarIntegrationException':
        from .exceptions import CalendarIntegrationException
        return CalendarIntegrationException
    elif name == 'ServiceUnavailableException':
        from .exceptions import ServiceUnavailableException
        return ServiceUnavailableException
    elif name == 'AuthenticationException':
        from .exceptions import AuthenticationException
        return AuthenticationException
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    'GoogleCalendarStore',
    'load_credentials',
    'CalendarServiceException',
    'CalendarIntegrationException',
    'ServiceUnavailableException',
    'AuthenticationException',
]
