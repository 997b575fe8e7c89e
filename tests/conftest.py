"""
Pytest configuration and fixtures
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
import pytz

from secretary.ai.conversation import ConversationTurn
from secretary.ai.llm_constants import TOOL_MODE_NATIVE
from secretary.ai.model_client import ModelClient, ModelReply
from secretary.tools.calendar.executor import ToolExecutor
from secretary.tools.calendar.models import CalendarEvent
from secretary.tools.calendar.store import InMemoryCalendarStore
from secretary.utils.config import (
    AgentConfig,
    AIConfig,
    CalendarConfig,
    ChatConfig,
    Config,
    ProcessingConfig,
)
from secretary.utils.datetime.resolver import DateTimeResolver

TIMEZONE = "America/New_York"
TZ = pytz.timezone(TIMEZONE)

# Sunday 2026-10-18, 10:00 in New York (EDT, -04:00)
FIXED_NOW = datetime(2026, 10, 18, 14, 0, tzinfo=pytz.UTC)


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Aware datetime in the test timezone"""
    return TZ.localize(datetime(year, month, day, hour, minute))


def make_event(
    event_id: str,
    title: str,
    start: datetime,
    minutes: int = 60,
    **kwargs: Any
) -> CalendarEvent:
    return CalendarEvent(id=event_id, title=title, start=start, end=start + timedelta(minutes=minutes), **kwargs)


def tool_call(name: str, arguments: Optional[Dict[str, Any]] = None, call_id: Optional[str] = None) -> Dict[str, Any]:
    """Provider-native tool-call candidate"""
    return {"id": call_id, "name": name, "arguments": arguments or {}}


class ScriptedModelClient(ModelClient):
    """
    Model double that replays scripted replies.

    Items in ``replies`` are ModelReply objects or exceptions to raise. Every
    request's turns are kept in ``requests``.
    """

    def __init__(self, replies: List[Any], mode: str = TOOL_MODE_NATIVE, repeat_last: bool = False):
        self.replies = list(replies)
        self.mode = mode
        self.repeat_last = repeat_last
        self.requests: List[List[ConversationTurn]] = []

    async def complete(self, turns: List[ConversationTurn]) -> ModelReply:
        self.requests.append(list(turns))
        if not self.replies:
            raise AssertionError("ScriptedModelClient ran out of replies")
        reply = self.replies[0] if self.repeat_last and len(self.replies) == 1 else self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def native_reply(*calls: Dict[str, Any], text: str = "") -> ModelReply:
    return ModelReply(text=text, tool_calls=list(calls))


def text_reply(text: str) -> ModelReply:
    return ModelReply(text=text)


@pytest.fixture
def test_config():
    """Test configuration"""
    return Config(
        agent=AgentConfig(
            name="Test Secretary",
            timezone=TIMEZONE,
            max_iterations=5,
        ),
        ai=AIConfig(
            api_key="test_key",
            timeout_seconds=5,
            max_retries=3,
            retry_backoff_seconds=0,
        ),
        calendar=CalendarConfig(
            default_event_duration=60,
            search_window="this month",
            store_timeout_seconds=5,
        ),
        chat=ChatConfig(
            target_group_name="Family Events",
            only_from_me=True,
            auto_reply=True,
        ),
        processing=ProcessingConfig(
            max_concurrent_calendar_ops=2,
            duplicate_event_window_minutes=5,
        ),
    )


@pytest.fixture(autouse=True)
def clear_timezone_env(monkeypatch):
    """Keep a developer's TIMEZONE variable out of the tests"""
    monkeypatch.delenv("TIMEZONE", raising=False)


@pytest.fixture
def resolver():
    return DateTimeResolver(TIMEZONE, clock=lambda: FIXED_NOW)


@pytest.fixture
def seeded_events():
    return [
        make_event("evt_team", "Team Meeting", local(2026, 10, 19, 10), minutes=30),
        make_event("evt_dentist", "Dentist", local(2026, 10, 20, 15), location="Main St"),
        make_event(
            "evt_dinner",
            "Family Dinner",
            local(2026, 10, 23, 19),
            minutes=120,
            description="At grandma's",
        ),
    ]


@pytest.fixture
def store(seeded_events):
    return InMemoryCalendarStore(seeded_events)


@pytest.fixture
def executor(store, test_config, resolver):
    return ToolExecutor(store, test_config, resolver=resolver)

