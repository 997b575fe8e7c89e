"""
Calendar tool package

- catalog.py: the tool specs advertised to the model
- models.py: tool calls, tool results and calendar events
- executor.py: dispatch of tool calls to handlers
- handlers.py: list/create/update/delete/search operations
- search.py: text matching and identifier lookup
- dedup.py: duplicate-create guard
- store.py: calendar store interface and in-memory store
"""

from .catalog import CapabilityCatalog, CalendarToolNames, ToolSpec, CALENDAR_TOOL_SPECS
from .models import ToolCall, ToolResult, RejectedCall, CalendarEvent, EventDraft, StoreResponse
from .store import CalendarStore, InMemoryCalendarStore
from .dedup import RecentEventRegistry
from .executor import CalendarAction, ToolExecutor

__all__ = [
    'CapabilityCatalog',
    'CalendarToolNames',
    'ToolSpec',
    'CALENDAR_TOOL_SPECS',
    'ToolCall',
    'ToolResult',
    'RejectedCall',
    'CalendarEvent',
    'EventDraft',
    'StoreResponse',
    'CalendarStore',
    'InMemoryCalendarStore',
    'RecentEventRegistry',
    'CalendarAction',
    'ToolExecutor',
]
