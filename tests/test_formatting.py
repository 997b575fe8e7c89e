"""
Tests for the Response Formatter
"""
import pytest

from secretary.agents.calendar.formatting import (
    NO_ACTION_MESSAGE,
    ResponseFormatter,
    infer_intent,
)
from secretary.tools.calendar.models import ToolCall, ToolResult


def result(name, success=True, data=None, error=None):
    source = ToolCall(id="call_0", name=name, arguments={})
    if success:
        return ToolResult.ok(source, data or {})
    return ToolResult.failure(source, error)


@pytest.fixture
def formatter():
    return ResponseFormatter()


class TestFormat:
    """ResponseFormatter.format"""

    def test_empty_results(self, formatter):
        assert formatter.format("create_event", []) == NO_ACTION_MESSAGE

    @pytest.mark.parametrize("intent", ["create_event", "edit_event", "delete_event", "query_events", "other", None])
    def test_success_never_empty(self, formatter, intent):
        assert formatter.format(intent, [result("create_calendar_event")]) != ""

    def test_intent_specific_phrasing(self, formatter):
        created = result("create_calendar_event", data={"title": "Lunch", "message": "Created: Lunch"})
        assert formatter.format("create_event", [created]) == "✅ Event created: Lunch"
        assert formatter.format("edit_event", [created]) == "✅ Event updated: Lunch"
        assert formatter.format("delete_event", [created]) == "✅ Event deleted: Lunch"
        assert formatter.format("other", [created]) == "✅ Created: Lunch"

    def test_error_line(self, formatter):
        failed = result("delete_calendar_event", success=False, error="not found")
        assert formatter.format("delete_event", [failed]) == "❌ Error: not found"

    def test_event_listing(self, formatter):
        listed = result("list_calendar_events", data={
            "count": 2,
            "events": [
                {"title": "Dentist", "start": "2026-10-20T15:00:00-04:00"},
                {"title": "", "start": ""},
            ],
        })
        assert formatter.format("query_events", [listed]) == (
            "📅 Found 2 event(s):\n"
            "• Dentist - Tue 20 Oct 15:00\n"
            "• (untitled) - time TBD"
        )

    def test_no_events(self, formatter):
        searched = result("search_calendar_events", data={"count": 0, "events": []})
        assert formatter.format("query_events", [searched]) == "📅 No events found"

    def test_lines_keep_result_order(self, formatter):
        lines = formatter.format("edit_event", [
            result("search_calendar_events", data={"count": 0, "events": []}),
            result("delete_calendar_event", success=False, error="not found"),
            result("create_calendar_event", data={"title": "Team Meeting"}),
        ]).splitlines()
        assert lines == ["📅 No events found", "❌ Error: not found", "✅ Event updated: Team Meeting"]


class TestInferIntent:
    """infer_intent"""

    def calls(self, *names):
        return [ToolCall(id=f"c{i}", name=n) for i, n in enumerate(names)]

    def test_move_is_edit(self):
        assert infer_intent(self.calls(
            "search_calendar_events", "delete_calendar_event", "create_calendar_event"
        )) == "edit_event"

    def test_single_actions(self):
        assert infer_intent(self.calls("update_calendar_event")) == "edit_event"
        assert infer_intent(self.calls("search_calendar_events", "delete_calendar_event")) == "delete_event"
        assert infer_intent(self.calls("create_calendar_event")) == "create_event"
        assert infer_intent(self.calls("list_calendar_events")) == "query_events"
        assert infer_intent([]) == "other"
