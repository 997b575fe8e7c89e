"""
Tests for the Tool Executor and calendar handlers
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import local
from secretary.tools.calendar.dedup import RecentEventRegistry
from secretary.tools.calendar.executor import CalendarAction, ToolExecutor
from secretary.tools.calendar.models import StoreResponse, ToolCall


def call(name, call_id="call_0", **arguments):
    return ToolCall(id=call_id, name=name, arguments=arguments)


class TestDispatch:
    """Routing and error normalisation"""

    def test_every_action_has_a_handler(self, executor):
        assert set(executor._dispatch) == set(CalendarAction)

    def test_from_tool_name(self):
        assert CalendarAction.from_tool_name("search_calendar_events") is CalendarAction.SEARCH
        assert CalendarAction.from_tool_name("send_email") is None

    async def test_unknown_tool(self, executor):
        request = call("send_email", to="someone")
        result = await executor.execute(request)
        assert result.success is False
        assert result.error == "Unknown tool: send_email"
        assert result.source_call is request

    async def test_unexpected_store_exception_becomes_failure(self, executor, store):
        store.get_events = AsyncMock(side_effect=RuntimeError("backend exploded"))
        result = await executor.execute(call("search_calendar_events", query="dentist"))
        assert result.success is False
        assert result.error == "backend exploded"

    async def test_store_timeout(self, test_config, store, resolver):
        config = test_config.model_copy(update={
            "calendar": test_config.calendar.model_copy(update={"store_timeout_seconds": 0.05})
        })

        async def slow_get_events(start, end):
            await asyncio.sleep(1)
            return []

        store.get_events = slow_get_events
        executor = ToolExecutor(store, config, resolver=resolver)
        result = await executor.execute(call("search_calendar_events", query="dentist"))
        assert result.success is False
        assert result.error == "Calendar operation timed out after 0.05s"

    async def test_strict_dates_report_unparseable_expression(self, test_config, store):
        config = test_config.model_copy(update={
            "calendar": test_config.calendar.model_copy(update={"strict_dates": True})
        })
        executor = ToolExecutor(store, config)
        result = await executor.execute(call("create_calendar_event", title="Yoga", start_time="whenever"))
        assert result.success is False
        assert result.error == "Could not understand date/time: 'whenever'"


class TestListEvents:
    """list_calendar_events"""

    async def test_single_day(self, executor):
        result = await executor.execute(call("list_calendar_events", start_date="tomorrow", end_date="tomorrow"))
        assert result.success is True
        assert result.data["count"] == 1
        event = result.data["events"][0]
        assert event["id"] == "evt_team"
        assert event["start"] == "2026-10-19T10:00:00-04:00"
        assert result.data["start"] == "2026-10-19T00:00:00-04:00"
        assert result.data["end"] == "2026-10-19T23:59:59-04:00"
        assert "warnings" not in result.data

    async def test_search_query_matches_description(self, executor):
        result = await executor.execute(call(
            "list_calendar_events", start_date="today", end_date="next week", search_query="grandma"
        ))
        assert [e["id"] for e in result.data["events"]] == ["evt_dinner"]

    async def test_end_before_start_is_corrected(self, executor):
        result = await executor.execute(call(
            "list_calendar_events", start_date="2026-10-20", end_date="2026-10-19"
        ))
        assert result.success is True
        assert [e["id"] for e in result.data["events"]] == ["evt_dentist"]
        assert result.data["end"] == "2026-10-20T23:59:59-04:00"

    async def test_fallback_is_reported(self, executor):
        result = await executor.execute(call("list_calendar_events", start_date="whenever", end_date="tomorrow"))
        assert result.success is True
        assert result.data["warnings"] == ["Could not understand 'whenever', used the current time instead"]


class TestCreateEvent:
    """create_calendar_event"""

    async def test_create_with_default_duration(self, executor, store):
        result = await executor.execute(call(
            "create_calendar_event", title="Meeting with John", start_time="tomorrow at 2pm"
        ))
        assert result.success is True
        assert result.data["start"] == "2026-10-19T14:00:00-04:00"
        assert result.data["end"] == "2026-10-19T15:00:00-04:00"
        assert result.data["message"] == "Created: Meeting with John"

        created = await store.get_event(result.data["event_id"])
        assert created.title == "Meeting with John"
        assert created.start == local(2026, 10, 19, 14)
        assert result.data["link"] == created.link

    async def test_explicit_end_time(self, executor):
        result = await executor.execute(call(
            "create_calendar_event", title="Workshop", start_time="friday 9am", end_time="friday 12pm",
            location="Library"
        ))
        assert result.data["end"] == "2026-10-23T12:00:00-04:00"

    async def test_end_not_after_start_uses_default(self, executor):
        result = await executor.execute(call(
            "create_calendar_event", title="Call", start_time="tomorrow 3pm", end_time="tomorrow 1pm"
        ))
        assert result.data["end"] == "2026-10-19T16:00:00-04:00"

    async def test_blank_title(self, executor):
        result = await executor.execute(call("create_calendar_event", title="  ", start_time="tomorrow"))
        assert result.success is False
        assert result.error == "Please provide 'title' for create_calendar_event"

    async def test_duplicate_is_refused(self, store, test_config, resolver):
        executor = ToolExecutor(
            store, test_config, resolver=resolver,
            recent_events=RecentEventRegistry(5, clock=lambda: 100.0)
        )
        arguments = {"title": "Soccer practice", "start_time": "tuesday 5pm"}
        first = await executor.execute(call("create_calendar_event", **arguments))
        second = await executor.execute(call("create_calendar_event", call_id="call_1", **arguments))

        assert first.success is True
        assert second.success is False
        assert second.error.startswith("Duplicate event: 'Soccer practice'")
        assert len([e for e in store.events if e.title == "Soccer practice"]) == 1

    async def test_store_failure(self, executor, store):
        store.create_event = AsyncMock(return_value=StoreResponse(success=False, error="quota exceeded"))
        result = await executor.execute(call("create_calendar_event", title="Lunch", start_time="today 1pm"))
        assert result.success is False
        assert result.error == "Failed to create event: quota exceeded"


class TestUpdateEvent:
    """update_calendar_event"""

    async def test_move_by_identifier_keeps_duration(self, executor, store):
        result = await executor.execute(call(
            "update_calendar_event", event_identifier="team meeting", updates={"start_time": "tomorrow 3pm"}
        ))
        assert result.success is True
        assert result.data["event_id"] == "evt_team"
        assert result.data["message"] == "Updated: Team Meeting"
        assert result.data["updates"] == {
            "start": "2026-10-19T15:00:00-04:00",
            "end": "2026-10-19T15:30:00-04:00",
        }
        moved = await store.get_event("evt_team")
        assert moved.start == local(2026, 10, 19, 15)

    async def test_rename_by_id(self, executor, store):
        result = await executor.execute(call(
            "update_calendar_event", event_id="evt_dentist", updates={"title": "Dentist checkup"}
        ))
        assert result.data["message"] == "Updated: Dentist checkup"
        assert (await store.get_event("evt_dentist")).title == "Dentist checkup"

    async def test_end_before_existing_start(self, executor):
        result = await executor.execute(call(
            "update_calendar_event", event_id="evt_dentist", updates={"end_time": "2026-10-20 14:00"}
        ))
        assert result.success is False
        assert "must be after the event start" in result.error

    async def test_no_supported_fields(self, executor):
        result = await executor.execute(call(
            "update_calendar_event", event_id="evt_dentist", updates={"color": "red"}
        ))
        assert result.success is False
        assert result.error.startswith("No fields to update")

    async def test_updates_must_be_object(self, executor):
        result = await executor.execute(call("update_calendar_event", event_id="evt_dentist", updates="3pm"))
        assert result.error == "'updates' must be an object of fields to change"

    async def test_unknown_id(self, executor):
        result = await executor.execute(call(
            "update_calendar_event", event_id="evt_nope", updates={"title": "x"}
        ))
        assert result.success is False
        assert result.error == "Failed to update event evt_nope: not found"

    async def test_identifier_not_found(self, executor):
        result = await executor.execute(call(
            "update_calendar_event", event_identifier="yoga", updates={"title": "x"}
        ))
        assert result.success is False
        assert result.error == "Event not found: yoga (searched this month)"


class TestDeleteEvent:
    """delete_calendar_event"""

    async def test_delete_by_id(self, executor, store):
        result = await executor.execute(call("delete_calendar_event", event_id="evt_dentist"))
        assert result.success is True
        assert result.data == {"event_id": "evt_dentist", "title": "Dentist", "message": "Deleted: Dentist"}
        assert await store.get_event("evt_dentist") is None

    async def test_delete_by_identifier(self, executor, store):
        result = await executor.execute(call("delete_calendar_event", event_identifier="dinner"))
        assert result.data["event_id"] == "evt_dinner"
        assert [e.id for e in store.events] == ["evt_team", "evt_dentist"]
        assert "warnings" not in result.data

    async def test_identifier_lookup_reports_unparseable_window(self, test_config, store, resolver):
        config = test_config.model_copy(update={
            "calendar": test_config.calendar.model_copy(update={"search_window": "whenever"})
        })
        executor = ToolExecutor(store, config, resolver=resolver)
        result = await executor.execute(call("delete_calendar_event", event_identifier="dinner"))
        assert result.success is True
        assert result.data["event_id"] == "evt_dinner"
        assert result.data["warnings"] == [
            "Could not understand date range 'whenever', used the next 7 days instead"
        ]

    @pytest.mark.parametrize("confirmation", [False, "false", "no"])
    async def test_requires_confirmation(self, executor, store, confirmation):
        result = await executor.execute(call(
            "delete_calendar_event", event_id="evt_dentist", confirmation=confirmation
        ))
        assert result.success is False
        assert result.error == "Event deletion requires confirmation"
        assert await store.get_event("evt_dentist") is not None

    async def test_store_reports_not_found(self, executor, store):
        store.delete_event = AsyncMock(return_value=StoreResponse(success=False, error="not found"))
        result = await executor.execute(call("delete_calendar_event", event_id="evt_dentist"))
        assert result.success is False
        assert result.error == "Failed to delete event evt_dentist: not found"


class TestSearchEvents:
    """search_calendar_events"""

    async def test_search_default_window(self, executor):
        result = await executor.execute(call("search_calendar_events", query="DINNER"))
        assert result.data["count"] == 1
        assert result.data["date_range"] == "this month"
        assert result.data["events"][0]["title"] == "Family Dinner"

    async def test_max_results(self, executor):
        result = await executor.execute(call("search_calendar_events", query="e", max_results=2))
        assert [e["id"] for e in result.data["events"]] == ["evt_team", "evt_dentist"]

    async def test_invalid_max_results_uses_default(self, executor):
        result = await executor.execute(call("search_calendar_events", query="e", max_results="lots"))
        assert result.data["count"] == 3

    async def test_date_range(self, executor):
        result = await executor.execute(call("search_calendar_events", query="meeting", date_range="next month"))
        assert result.data["count"] == 0
        assert result.data["events"] == []

    async def test_query_ignores_location(self, executor):
        result = await executor.execute(call("search_calendar_events", query="main"))
        assert result.data["count"] == 0

    async def test_query_matches_description(self, executor):
        result = await executor.execute(call("search_calendar_events", query="grandma"))
        assert [e["id"] for e in result.data["events"]] == ["evt_dinner"]

    async def test_unparseable_range_is_reported(self, executor):
        result = await executor.execute(call("search_calendar_events", query="dinner", date_range="whenever"))
        assert result.success is True
        assert result.data["count"] == 1
        assert result.data["warnings"] == [
            "Could not understand date range 'whenever', used the next 7 days instead"
        ]

    async def test_known_range_has_no_warnings(self, executor):
        result = await executor.execute(call("search_calendar_events", query="dinner", date_range="this week"))
        assert "warnings" not in result.data
