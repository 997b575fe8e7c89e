"""
Tests for the LangChain model clients
"""
from unittest.mock import AsyncMock, Mock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from secretary.ai.conversation import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL, ROLE_USER, ConversationTurn
from secretary.ai.model_client import (
    JsonPromptModelClient,
    ToolCallingModelClient,
    create_model_client,
    message_text,
)
from secretary.core.exceptions import TransportError
from secretary.tools.calendar.catalog import CapabilityCatalog


def make_llm(reply=None, error=None):
    """Chat model double; bind_tools returns a runnable sharing the same ainvoke"""
    llm = Mock()
    llm.ainvoke = AsyncMock(return_value=reply, side_effect=error)
    llm.bind_tools.return_value = llm
    return llm


TURNS = [
    ConversationTurn(role=ROLE_SYSTEM, content="system prompt"),
    ConversationTurn(role=ROLE_USER, content="find the dentist"),
    ConversationTurn(
        role=ROLE_ASSISTANT,
        tool_calls=[{"id": "iter1_call_0", "name": "search_calendar_events", "arguments": {"query": "dentist"}}],
    ),
    ConversationTurn(role=ROLE_TOOL, content='{"success": true}', tool_call_id="iter1_call_0",
                     name="search_calendar_events"),
]


class TestMessageText:
    """message_text"""

    def test_string_content(self):
        assert message_text(AIMessage(content="hello")) == "hello"

    def test_content_parts(self):
        message = AIMessage(content=[{"type": "text", "text": "a"}, "b", {"type": "image_url", "image_url": "x"}])
        assert message_text(message) == "ab"

    def test_none(self):
        assert message_text(None) == ""


class TestToolCallingModelClient:
    """Native tool calling"""

    def test_binds_catalog_tools(self):
        llm = make_llm()
        ToolCallingModelClient(llm, CapabilityCatalog())

        tools = llm.bind_tools.call_args.args[0]
        assert {t["function"]["name"] for t in tools} == set(CapabilityCatalog().names())
        assert llm.bind_tools.call_args.kwargs["tool_choice"] == "auto"

    def test_to_messages(self):
        client = ToolCallingModelClient(make_llm(), CapabilityCatalog())

        messages = client.to_messages(TURNS)

        assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, ToolMessage]
        assert messages[2].tool_calls[0]["id"] == "iter1_call_0"
        assert messages[2].tool_calls[0]["args"] == {"query": "dentist"}
        assert messages[3].tool_call_id == "iter1_call_0"

    async def test_complete_returns_tool_calls(self):
        reply = AIMessage(content="", tool_calls=[
            {"id": "provider-1", "name": "list_calendar_events", "args": {"date_range": "today"}},
        ])
        client = ToolCallingModelClient(make_llm(reply), CapabilityCatalog())

        result = await client.complete(TURNS[:2])

        assert result.text == ""
        assert result.tool_calls == [
            {"id": "provider-1", "name": "list_calendar_events", "arguments": {"date_range": "today"}}
        ]

    async def test_provider_failure_becomes_transport_error(self):
        client = ToolCallingModelClient(make_llm(error=RuntimeError("503 from provider")), CapabilityCatalog())

        with pytest.raises(TransportError, match="503 from provider"):
            await client.complete(TURNS[:2])


class TestJsonPromptModelClient:
    """Prompted JSON mode"""

    def test_tool_turns_become_user_messages(self):
        client = JsonPromptModelClient(make_llm())

        messages = client.to_messages(TURNS)

        assert isinstance(messages[3], HumanMessage)
        assert messages[3].content.startswith("TOOL RESULT for search_calendar_events (iter1_call_0):")

    async def test_complete_returns_text_only(self):
        client = JsonPromptModelClient(make_llm(AIMessage(content='{"intent": "other"}')))

        result = await client.complete(TURNS[:2])

        assert result.text == '{"intent": "other"}'
        assert result.tool_calls == []


class TestCreateModelClient:
    """create_model_client"""

    def test_modes(self):
        catalog = CapabilityCatalog()
        assert isinstance(create_model_client(make_llm(), catalog, "native"), ToolCallingModelClient)
        assert isinstance(create_model_client(make_llm(), catalog, "JSON"), JsonPromptModelClient)
        assert isinstance(create_model_client(make_llm(), catalog), ToolCallingModelClient)

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown tool mode"):
            create_model_client(make_llm(), CapabilityCatalog(), "xml")
