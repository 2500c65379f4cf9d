"""Tests for the reasoning engine."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import groq
import httpx
import openai
import pytest

from voicedesk.services.llm.brain import (
    EMPTY_REPLY,
    NO_RESPONSE_REPLY,
    TOOL_DONE_REPLY,
    VOICE_STYLE_INSTRUCTION,
    ReasoningEngine,
    build_system_prompt,
    format_history,
)
from voicedesk.services.llm.exceptions import (
    LLMAuthenticationError,
    LLMConfigurationError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMServiceError,
)
from voicedesk.services.llm.protocol import GROQ_MODELS, Role, RunOptions, Turn
from voicedesk.services.llm.tools import TOOL_RESULTS, run_tool, tool_definitions
from voicedesk.verticals.builtin import BUILTIN_VERTICALS
from voicedesk.verticals.models import ToolName, VerticalConfig

GROQ_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


class FakeCompletions:
    """Replays canned completions (or raises canned errors) in order."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    async def create(self, **request: Any) -> Any:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def fake_client(*responses: Any) -> tuple[SimpleNamespace, FakeCompletions]:
    completions = FakeCompletions(*responses)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def completion(content: str | None = None, tool_calls: list | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))]
    )


def tool_call(name: str, arguments: str = "{}") -> SimpleNamespace:
    return SimpleNamespace(
        id="call_1",
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


PLAIN_VERTICAL = VerticalConfig(
    name="Plain",
    system_prompt="You are a receptionist.",
    greeting="Hello.",
)

HISTORY = [Turn(Role.CALLER, "I need help")]


class TestSystemPrompt:
    """Tests for build_system_prompt."""

    def test_includes_persona_compliance_and_style(self) -> None:
        config = BUILTIN_VERTICALS["support"]

        prompt = build_system_prompt(config)

        assert prompt.startswith(config.system_prompt)
        assert f"Compliance: {config.compliance}" in prompt
        assert prompt.endswith(VOICE_STYLE_INSTRUCTION)

    def test_includes_optional_business_fields(self) -> None:
        config = VerticalConfig(
            name="Acme",
            system_prompt="You sell widgets.",
            greeting="Hi.",
            business_context="B2B widget supplier",
            company_name="Acme",
            value_proposition="Widgets delivered in a day",
            script=("Ask about volume",),
            knowledge=("Free shipping over 100 units",),
        )

        prompt = build_system_prompt(config)

        assert "Business context: B2B widget supplier" in prompt
        assert "company/product name: Acme." in prompt
        assert "Widgets delivered in a day" in prompt
        assert "- Ask about volume" in prompt
        assert "- Free shipping over 100 units" in prompt

    def test_format_history_maps_roles(self) -> None:
        messages = format_history([Turn(Role.CALLER, "hi"), Turn(Role.AGENT, "hello")])

        assert messages == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]


class TestProviderSelection:
    """Tests for provider and model selection."""

    def test_groq_key_makes_groq_default(self, settings) -> None:
        engine = ReasoningEngine(settings)

        assert engine.available_providers() == ["groq"]
        assert engine.default_provider() == "groq"
        assert engine.default_model("groq") == "llama-3.3-70b-versatile"
        assert engine.models("groq") == GROQ_MODELS

    def test_preferred_provider_wins(self, settings_factory) -> None:
        engine = ReasoningEngine(settings_factory(openai_api_key="sk-test", llm_provider="openai"))

        assert engine.available_providers() == ["groq", "openai"]
        assert engine.default_provider() == "openai"

    def test_ollama_only_when_selected(self, settings_factory) -> None:
        engine = ReasoningEngine(settings_factory(groq_api_key=None, llm_provider="ollama"))

        assert engine.available_providers() == ["ollama"]
        assert [m.id for m in engine.models("ollama")] == ["llama3.2"]

    def test_no_provider(self, settings_factory) -> None:
        engine = ReasoningEngine(settings_factory(groq_api_key=None))

        assert engine.available_providers() == []
        assert engine.default_provider() is None


class TestRun:
    """Tests for ReasoningEngine.run."""

    @pytest.mark.asyncio
    async def test_returns_stripped_reply(self, settings) -> None:
        client, completions = fake_client(completion("  How can I assist?  "))
        engine = ReasoningEngine(settings, clients={"groq": client})

        reply = await engine.run(BUILTIN_VERTICALS["sales"], HISTORY)

        assert reply == "How can I assist?"
        request = completions.requests[0]
        assert request["model"] == "llama-3.3-70b-versatile"
        assert request["max_tokens"] == 150
        assert request["messages"][0]["role"] == "system"
        assert request["messages"][1:] == [{"role": "user", "content": "I need help"}]

    @pytest.mark.asyncio
    async def test_passes_exactly_the_vertical_tools(self, settings) -> None:
        client, completions = fake_client(completion("ok"))
        engine = ReasoningEngine(settings, clients={"groq": client})

        await engine.run(BUILTIN_VERTICALS["sales"], HISTORY)

        names = [tool["function"]["name"] for tool in completions.requests[0]["tools"]]
        assert names == ["book_meeting", "update_crm", "escalate_to_agent"]

    @pytest.mark.asyncio
    async def test_no_tools_key_without_tools(self, settings) -> None:
        client, completions = fake_client(completion("ok"))
        engine = ReasoningEngine(settings, clients={"groq": client})

        await engine.run(PLAIN_VERTICAL, HISTORY)

        assert "tools" not in completions.requests[0]

    @pytest.mark.asyncio
    async def test_options_override_model(self, settings) -> None:
        client, completions = fake_client(completion("ok"))
        engine = ReasoningEngine(settings, clients={"groq": client})

        await engine.run(PLAIN_VERTICAL, HISTORY, RunOptions(model="llama-3.1-8b-instant"))

        assert completions.requests[0]["model"] == "llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_no_choices(self, settings) -> None:
        client, _ = fake_client(SimpleNamespace(choices=[]))
        engine = ReasoningEngine(settings, clients={"groq": client})

        assert await engine.run(PLAIN_VERTICAL, HISTORY) == NO_RESPONSE_REPLY

    @pytest.mark.asyncio
    async def test_empty_content(self, settings) -> None:
        client, _ = fake_client(completion("   "))
        engine = ReasoningEngine(settings, clients={"groq": client})

        assert await engine.run(PLAIN_VERTICAL, HISTORY) == EMPTY_REPLY

    @pytest.mark.asyncio
    async def test_tool_call_gets_follow_up(self, settings) -> None:
        client, completions = fake_client(
            completion(tool_calls=[tool_call("create_ticket", '{"summary": "broken login"}')]),
            completion("I've opened a ticket for you."),
        )
        engine = ReasoningEngine(settings, clients={"groq": client})

        reply = await engine.run(BUILTIN_VERTICALS["support"], HISTORY)

        assert reply == "I've opened a ticket for you."
        follow_up = completions.requests[1]
        assert "tools" not in follow_up
        assert follow_up["messages"][-2]["tool_calls"][0]["function"]["name"] == "create_ticket"
        assert follow_up["messages"][-1] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "content": TOOL_RESULTS[ToolName.CREATE_TICKET],
        }

    @pytest.mark.asyncio
    async def test_empty_follow_up(self, settings) -> None:
        client, _ = fake_client(
            completion(tool_calls=[tool_call("escalate_to_agent", "not json")]),
            completion(""),
        )
        engine = ReasoningEngine(settings, clients={"groq": client})

        assert await engine.run(BUILTIN_VERTICALS["sales"], HISTORY) == TOOL_DONE_REPLY

    @pytest.mark.asyncio
    async def test_tool_not_offered_to_vertical_is_refused(self, settings) -> None:
        client, completions = fake_client(
            completion(tool_calls=[tool_call("account_balance")]),
            completion("I can't check balances on this line."),
        )
        engine = ReasoningEngine(settings, clients={"groq": client})

        reply = await engine.run(BUILTIN_VERTICALS["sales"], HISTORY)

        assert reply == "I can't check balances on this line."
        tool_message = completions.requests[1]["messages"][-1]
        assert tool_message["content"] == "Tool account_balance is not available on this call."

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self, settings) -> None:
        engine = ReasoningEngine(settings)

        with pytest.raises(LLMConfigurationError):
            await engine.run(PLAIN_VERTICAL, HISTORY, RunOptions(provider="openai"))

    @pytest.mark.asyncio
    async def test_no_provider_configured(self, settings_factory) -> None:
        engine = ReasoningEngine(settings_factory(groq_api_key=None))

        with pytest.raises(LLMConfigurationError):
            await engine.run(PLAIN_VERTICAL, HISTORY)

    @pytest.mark.asyncio
    async def test_injected_openai_client_counts_as_configured(self, settings) -> None:
        client, completions = fake_client(completion("from openai"))
        engine = ReasoningEngine(settings, clients={"openai": client})

        reply = await engine.run(PLAIN_VERTICAL, HISTORY, RunOptions(provider="openai"))

        assert reply == "from openai"
        assert completions.requests[0]["model"] == "gpt-4o-mini"


class TestErrorMapping:
    """SDK errors are mapped to the LLM exception hierarchy."""

    @pytest.mark.asyncio
    async def test_rate_limit(self, settings) -> None:
        error = groq.RateLimitError(
            "rate limited",
            response=httpx.Response(429, headers={"retry-after": "7"}, request=GROQ_REQUEST),
            body=None,
        )
        client, _ = fake_client(error)
        engine = ReasoningEngine(settings, clients={"groq": client})

        with pytest.raises(LLMRateLimitError) as exc_info:
            await engine.run(PLAIN_VERTICAL, HISTORY)

        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_connection_error(self, settings) -> None:
        client, _ = fake_client(groq.APIConnectionError(request=GROQ_REQUEST))
        engine = ReasoningEngine(settings, clients={"groq": client})

        with pytest.raises(LLMConnectionError):
            await engine.run(PLAIN_VERTICAL, HISTORY)

    @pytest.mark.asyncio
    async def test_authentication_error(self, settings) -> None:
        error = groq.AuthenticationError(
            "bad key",
            response=httpx.Response(401, request=GROQ_REQUEST),
            body=None,
        )
        client, _ = fake_client(error)
        engine = ReasoningEngine(settings, clients={"groq": client})

        with pytest.raises(LLMAuthenticationError):
            await engine.run(PLAIN_VERTICAL, HISTORY)

    @pytest.mark.asyncio
    async def test_openai_status_error(self, settings) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.InternalServerError(
            "server error",
            response=httpx.Response(500, request=request),
            body=None,
        )
        client, _ = fake_client(error)
        engine = ReasoningEngine(settings, clients={"openai": client})

        with pytest.raises(LLMServiceError):
            await engine.run(PLAIN_VERTICAL, HISTORY, RunOptions(provider="openai"))


class TestTools:
    """Tests for tool schemas and the stub executor."""

    def test_tool_definitions_follow_order(self) -> None:
        definitions = tool_definitions([ToolName.SEARCH_KB, ToolName.CREATE_TICKET])

        assert [d["function"]["name"] for d in definitions] == ["search_kb", "create_ticket"]
        assert definitions[0]["type"] == "function"

    @pytest.mark.asyncio
    async def test_run_known_tool(self) -> None:
        result = await run_tool("book_meeting", {"date": "Monday"})

        assert result == TOOL_RESULTS[ToolName.BOOK_MEETING]

    @pytest.mark.asyncio
    async def test_run_unknown_tool(self) -> None:
        assert await run_tool("teleport", {}) == "Tool teleport is not implemented yet."

    @pytest.mark.asyncio
    async def test_run_tool_outside_permitted(self) -> None:
        result = await run_tool(
            "account_balance", {}, [ToolName.BOOK_MEETING, ToolName.UPDATE_CRM]
        )

        assert result == "Tool account_balance is not available on this call."
