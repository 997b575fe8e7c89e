"""
Tests for SecretaryService (chat intake and stats)
"""
import asyncio
from unittest.mock import Mock

import pytest

from conftest import ScriptedModelClient, native_reply, text_reply, tool_call
from secretary.agents.calendar.orchestrator import ConversationOrchestrator
from secretary.ai.model_client import JsonPromptModelClient, ToolCallingModelClient
from secretary.core.exceptions import TransportError
from secretary.services.secretary_service import (
    ChatMessage,
    SecretaryService,
    SecretaryStats,
    build_orchestrator,
)
from secretary.tools.calendar.dedup import RecentEventRegistry
from secretary.tools.calendar.executor import ToolExecutor


def group_message(body, from_me=True, chat_name="Family Events", sender="Dana"):
    return ChatMessage(body=body, chat_name=chat_name, sender=sender, from_me=from_me)


def make_service(config, executor, replies, **model_kwargs):
    model = ScriptedModelClient(replies, **model_kwargs)
    return SecretaryService(ConversationOrchestrator(model, executor, config), config), model


# ============================================
# FILTERING
# ============================================

class TestShouldProcess:
    """Message filtering"""

    @pytest.fixture
    def service(self, executor, test_config):
        return make_service(test_config, executor, [])[0]

    def test_own_message_in_target_group(self, service):
        assert service.should_process(group_message("dinner friday 7pm")) is True

    def test_other_group(self, service):
        assert service.should_process(group_message("dinner", chat_name="Work")) is False

    def test_direct_message(self, service):
        message = ChatMessage(body="dinner", chat_name="Family Events", from_me=True, is_group=False)
        assert service.should_process(message) is False

    def test_other_sender_when_only_from_me(self, service):
        assert service.should_process(group_message("dinner", from_me=False)) is False

    def test_other_sender_allowed(self, executor, test_config):
        config = test_config.model_copy(update={
            "chat": test_config.chat.model_copy(update={"only_from_me": False})
        })
        service = make_service(config, executor, [])[0]
        assert service.should_process(group_message("dinner", from_me=False)) is True

    def test_blank_body(self, service):
        assert service.should_process(group_message("   ")) is False


# ============================================
# HANDLING
# ============================================

class TestHandleMessage:
    """handle_message"""

    async def test_create_event_reply_and_stats(self, executor, test_config):
        service, model = make_service(test_config, executor, [
            native_reply(tool_call("create_calendar_event", {"title": "Soccer", "start_time": "tomorrow 5pm"})),
            text_reply("Added soccer tomorrow at 5pm."),
        ])

        reply = await service.handle_message(group_message("soccer tomorrow at 5"))

        assert reply == "📅 Added soccer tomorrow at 5pm."
        assert model.requests[0][1].content == 'Message from Dana: "soccer tomorrow at 5"'
        assert service.stats.to_dict() == {
            "messages_processed": 1,
            "events_detected": 1,
            "events_created": 1,
            "errors_encountered": 0,
            "duplicates_skipped": 0,
        }
        assert service.stats.success_rate == 100

    async def test_filtered_message_is_counted_but_not_run(self, executor, test_config):
        service, model = make_service(test_config, executor, [])

        assert await service.handle_message(group_message("hello", chat_name="Work")) is None

        assert model.requests == []
        assert service.stats.messages_processed == 1
        assert service.stats.events_detected == 0

    async def test_plain_chat_is_not_an_event(self, executor, test_config):
        service, _ = make_service(test_config, executor, [text_reply("Hi!")])

        assert await service.handle_message(group_message("hi")) == "📅 Hi!"
        assert service.stats.events_detected == 0
        assert service.stats.success_rate is None

    async def test_no_reply_when_auto_reply_off(self, executor, test_config):
        config = test_config.model_copy(update={
            "chat": test_config.chat.model_copy(update={"auto_reply": False})
        })
        service, _ = make_service(config, executor, [text_reply("Hi!")])

        assert await service.handle_message(group_message("hi")) is None

    async def test_failed_run_counts_error(self, executor, test_config):
        service, _ = make_service(test_config, executor, [TransportError("down")] * 3)

        reply = await service.handle_message(group_message("lunch tomorrow"))

        assert reply == "📅 Model API error: down"
        assert service.stats.errors_encountered == 1

    async def test_failed_tool_results_count_errors(self, executor, test_config):
        service, _ = make_service(test_config, executor, [
            native_reply(tool_call("delete_calendar_event", {"event_identifier": "piano lesson"})),
            text_reply("I couldn't find a piano lesson."),
        ])

        await service.handle_message(group_message("cancel piano"))

        assert service.stats.events_detected == 1
        assert service.stats.errors_encountered == 1
        assert service.stats.events_created == 0

    async def test_repeated_message_counts_duplicate_not_error(self, store, test_config, resolver):
        executor = ToolExecutor(
            store, test_config, resolver=resolver,
            recent_events=RecentEventRegistry(5, clock=lambda: 100.0)
        )
        create = tool_call("create_calendar_event", {"title": "Soccer", "start_time": "tomorrow 5pm"})
        service, _ = make_service(test_config, executor, [
            native_reply(create),
            text_reply("Added soccer."),
            native_reply(create),
            text_reply("Soccer is already on the calendar."),
        ])

        await service.handle_message(group_message("soccer tomorrow at 5"))
        await service.handle_message(group_message("soccer tomorrow at 5"))

        assert service.stats.events_created == 1
        assert service.stats.duplicates_skipped == 1
        assert service.stats.errors_encountered == 0
        assert len([e for e in store.events if e.title == "Soccer"]) == 1

    async def test_concurrency_is_limited(self, executor, test_config):
        service, _ = make_service(test_config, executor, [])
        active = []
        peak = []

        async def slow_run(message, sender="User"):
            active.append(message)
            peak.append(len(active))
            await asyncio.sleep(0.01)
            active.remove(message)
            return Mock(success=True, tool_calls=[], response="ok")

        service.orchestrator.run = slow_run

        await asyncio.gather(*(service.handle_message(group_message(f"msg {i}")) for i in range(6)))

        assert max(peak) == test_config.processing.max_concurrent_calendar_ops
        assert service.stats.messages_processed == 6


class TestStats:
    """SecretaryStats"""

    def test_success_rate(self):
        stats = SecretaryStats(events_detected=4, events_created=3)
        assert stats.success_rate == 75


class TestBuildOrchestrator:
    """build_orchestrator"""

    def test_native_mode_from_config(self, store, test_config):
        llm = Mock()
        orchestrator = build_orchestrator(test_config, store, llm=llm)

        assert isinstance(orchestrator.model, ToolCallingModelClient)
        assert llm.bind_tools.called
        assert orchestrator.executor.handlers.recent_events is not None

    def test_mode_override(self, store, test_config):
        orchestrator = build_orchestrator(test_config, store, llm=Mock(), mode="json")
        assert isinstance(orchestrator.model, JsonPromptModelClient)
        assert orchestrator.json_mode is True
