"""
Calendar Capability Catalog

The fixed set of calendar tools advertised to the model. Each tool is a
name, a description and a JSON-Schema parameter object; the catalog is
static after construction and is used both to render the tool menu in the
system prompt and to validate tool calls structurally.
"""
import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ...utils.logger import setup_logger

logger = setup_logger(__name__)


# ============================================
# TOOL NAMES
# ============================================

class CalendarToolNames:
    """Tool name constants"""
    LIST_EVENTS = "list_calendar_events"
    CREATE_EVENT = "create_calendar_event"
    UPDATE_EVENT = "update_calendar_event"
    DELETE_EVENT = "delete_calendar_event"
    SEARCH_EVENTS = "search_calendar_events"


@dataclass(frozen=True)
class ToolSpec:
    """Immutable description of one capability"""
    name: str
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    @property
    def required(self) -> List[str]:
        return list(self.parameters.get("required", []))

    @property
    def required_groups(self) -> List[List[str]]:
        """Alternative required-field groups (``anyOf``); one group must be satisfied."""
        return [list(option.get("required", [])) for option in self.parameters.get("anyOf", [])]


_EVENT_TARGET_PROPERTIES = {
    "event_id": {
        "type": "string",
        "description": "The exact event ID (obtained from list_calendar_events or search_calendar_events)"
    },
    "event_identifier": {
        "type": "string",
        "description": "Event ID or a search term (e.g. the event title) identifying the event"
    },
}

_EVENT_TARGET_GROUPS = [
    {"required": ["event_id"]},
    {"required": ["event_identifier"]},
]


CALENDAR_TOOL_SPECS = (
    ToolSpec(
        name=CalendarToolNames.LIST_EVENTS,
        description=(
            "List calendar events within a specific time range. "
            "Use this to see what events exist before modifying them."
        ),
        parameters={
            "type": "object",
            "properties": {
                "start_date": {
                    "type": "string",
                    "description": "Start date in YYYY-MM-DD format or relative (today, tomorrow, monday)"
                },
                "end_date": {
                    "type": "string",
                    "description": (
                        "End date in YYYY-MM-DD format or relative (today, tomorrow, friday). "
                        "For single day queries, use the same date as start_date"
                    )
                },
                "search_query": {
                    "type": "string",
                    "description": "Optional search term to filter events by title or description"
                },
            },
            "required": ["start_date", "end_date"],
        },
    ),
    ToolSpec(
        name=CalendarToolNames.CREATE_EVENT,
        description=(
            "Create a new calendar event. "
            "Use this to add new appointments, meetings, or reminders."
        ),
        parameters={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Event title or summary"},
                "start_time": {
                    "type": "string",
                    "description": (
                        "Start date and time in ISO 8601 format with offset "
                        "(e.g. '2025-08-20T14:00:00+03:00') or natural language"
                    )
                },
                "end_time": {
                    "type": "string",
                    "description": "End date and time. If not specified, defaults to 1 hour after start_time"
                },
                "location": {"type": "string", "description": "Event location (optional)"},
                "description": {"type": "string", "description": "Event description or notes (optional)"},
            },
            "required": ["title", "start_time"],
        },
    ),
    ToolSpec(
        name=CalendarToolNames.UPDATE_EVENT,
        description=(
            "Update an existing calendar event. "
            "Always search for events first to get the correct event ID."
        ),
        parameters={
            "type": "object",
            "properties": {
                **_EVENT_TARGET_PROPERTIES,
                "updates": {
                    "type": "object",
                    "description": "Object containing the fields to update",
                    "properties": {
                        "title": {"type": "string", "description": "New event title"},
                        "start_time": {"type": "string", "description": "New start time"},
                        "end_time": {"type": "string", "description": "New end time"},
                        "location": {"type": "string", "description": "New location"},
                        "description": {"type": "string", "description": "New description"},
                    },
                },
            },
            "required": ["updates"],
            "anyOf": _EVENT_TARGET_GROUPS,
        },
    ),
    ToolSpec(
        name=CalendarToolNames.DELETE_EVENT,
        description=(
            "Delete an existing calendar event. "
            "Always search for events first to get the correct event ID."
        ),
        parameters={
            "type": "object",
            "properties": {
                **_EVENT_TARGET_PROPERTIES,
                "event_title": {
                    "type": "string",
                    "description": "Event title for confirmation and logging purposes"
                },
                "confirmation": {
                    "type": "boolean",
                    "description": "Confirmation that the event should be deleted",
                    "default": True
                },
            },
            "anyOf": _EVENT_TARGET_GROUPS,
        },
    ),
    ToolSpec(
        name=CalendarToolNames.SEARCH_EVENTS,
        description=(
            "Search for calendar events by title, keywords, or content. "
            "Use this to find specific events before modifying them."
        ),
        parameters={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query - event title, keywords, or content to search for"
                },
                "date_range": {
                    "type": "string",
                    "description": "Optional date range like 'this week', 'next month', 'today', 'tomorrow'"
                },
                "max_results": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 10)"
                },
            },
            "required": ["query"],
        },
    ),
)


class CapabilityCatalog:
    """
    Registry of the tools the model may invoke.

    Specs are frozen; parameter schemas are exposed read-only.
    """

    def __init__(self, specs: Sequence[ToolSpec] = CALENDAR_TOOL_SPECS):
        self._specs: Dict[str, ToolSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate tool name in catalog: {spec.name}")
            self._specs[spec.name] = ToolSpec(
                name=spec.name,
                description=spec.description,
                parameters=MappingProxyType(copy.deepcopy(dict(spec.parameters))),
            )
        logger.debug(f"[CapabilityCatalog] Registered {len(self._specs)} tools: {self.names()}")

    def list(self) -> List[ToolSpec]:
        """All tools in catalog order"""
        return list(self._specs.values())

    def names(self) -> List[str]:
        return list(self._specs)

    def exists(self, name: Optional[str]) -> bool:
        return bool(name) and name in self._specs

    def get(self, name: str) -> ToolSpec:
        """
        Look up a tool.

        Raises:
            KeyError: If the tool is not in the catalog
        """
        return self._specs[name]

    def schema_for(self, name: str) -> Dict[str, Any]:
        """
        JSON-Schema parameter object for a tool (a deep copy).

        Raises:
            KeyError: If the tool is not in the catalog
        """
        return copy.deepcopy(dict(self._specs[name].parameters))

    def render_prompt_block(self) -> str:
        """
        Tool menu for the system prompt: one ``- name: description`` line per
        tool, in catalog order.
        """
        return "\n".join(f"- {spec.name}: {spec.description}" for spec in self._specs.values())

    def to_model_tools(self) -> List[Dict[str, Any]]:
        """
        Function definitions for provider-native tool calling.

        ``anyOf`` required-groups are left out of the provider schema (not every
        provider accepts them at the top level); they are enforced by the
        tool-call validator instead.
        """
        tools = []
        for spec in self._specs.values():
            parameters = self.schema_for(spec.name)
            parameters.pop("anyOf", None)
            tools.append({
                "type": "function",
                "function": {
                    "name": spec.name,
                    "description": spec.description,
                    "parameters": parameters,
                },
            })
        return tools

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._specs
