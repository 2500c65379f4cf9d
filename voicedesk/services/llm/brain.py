"""Reasoning engine: chat completions with a vertical's persona and tools.

Groq is called through its own async SDK; OpenAI and Ollama share the
OpenAI-compatible SDK (Ollama through its /v1 endpoint).
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping, Sequence
from typing import Any

import groq
import openai
from groq import AsyncGroq
from openai import AsyncOpenAI

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger
from voicedesk.services.llm.exceptions import (
    LLMAuthenticationError,
    LLMConfigurationError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMServiceError,
)
from voicedesk.services.llm.protocol import (
    GROQ_MODELS,
    OPENAI_MODELS,
    PROVIDERS,
    ModelOption,
    ProviderName,
    RunOptions,
    Turn,
)
from voicedesk.services.llm.tools import run_tool, tool_definitions
from voicedesk.verticals.models import ToolName, VerticalConfig

logger: Any = get_logger(__name__)

VOICE_STYLE_INSTRUCTION = "Respond in 1-3 short sentences suitable for voice. No markdown."

NO_RESPONSE_REPLY = "I did not get a response. Can you repeat?"
EMPTY_REPLY = "Anything else I can help with?"
TOOL_DONE_REPLY = "Done. Anything else?"


def build_system_prompt(config: VerticalConfig) -> str:
    """Build the system message from a vertical's persona and policy."""
    parts = [config.system_prompt]

    if config.business_context:
        parts.append(f"Business context: {config.business_context}")
    if config.company_name:
        parts.append(f"When relevant, use this company/product name: {config.company_name}.")
    if config.value_proposition:
        parts.append(f"Value proposition to align with: {config.value_proposition}")
    if config.script:
        lines = "\n".join(f"- {line}" for line in config.script)
        parts.append(f"Preferred script lines (use when they fit the conversation):\n{lines}")
    if config.knowledge:
        lines = "\n".join(f"- {line}" for line in config.knowledge)
        parts.append(f"Knowledge to use in answers:\n{lines}")
    if config.compliance:
        parts.append(f"Compliance: {config.compliance}")

    parts.append(VOICE_STYLE_INSTRUCTION)
    return "\n\n".join(part for part in parts if part)


def format_history(history: Sequence[Turn]) -> list[dict[str, Any]]:
    """Format conversation turns as chat-completions messages."""
    return [{"role": turn.role.chat_role, "content": turn.text} for turn in history]


class ReasoningEngine:
    """Produces the agent's reply for one conversation turn.

    Clients are created lazily per provider; tests may inject them.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clients: Mapping[ProviderName, Any] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clients: dict[ProviderName, Any] = dict(clients or {})

    def available_providers(self) -> list[ProviderName]:
        """Providers with credentials (or an injected client), in preference order."""
        s = self._settings
        configured = {
            "groq": s.groq_api_key is not None,
            "openai": s.openai_api_key is not None,
            "ollama": s.llm_provider == "ollama",
        }
        return [p for p in PROVIDERS if p in self._clients or configured[p]]

    def default_provider(self) -> ProviderName | None:
        """LLM_PROVIDER when usable, otherwise the first available provider."""
        available = self.available_providers()
        preferred = self._settings.llm_provider
        if preferred and preferred in available:
            return preferred
        return available[0] if available else None

    def default_model(self, provider: ProviderName) -> str:
        s = self._settings
        if provider == "groq":
            return s.groq_chat_model
        if provider == "ollama":
            return s.ollama_chat_model
        return s.openai_chat_model

    def models(self, provider: ProviderName) -> tuple[ModelOption, ...]:
        """Selectable models for a provider."""
        if provider == "groq":
            return GROQ_MODELS
        if provider == "openai":
            return OPENAI_MODELS
        model = self.default_model(provider)
        return (ModelOption(model, model),)

    def client(self, provider: ProviderName) -> Any:
        """Lazy initialization of the provider's async client."""
        if provider not in self._clients:
            s = self._settings
            if provider == "groq":
                assert s.groq_api_key is not None
                self._clients[provider] = AsyncGroq(
                    api_key=s.groq_api_key.get_secret_value(),
                    timeout=30.0,
                    max_retries=2,
                )
            elif provider == "openai":
                assert s.openai_api_key is not None
                self._clients[provider] = AsyncOpenAI(
                    api_key=s.openai_api_key.get_secret_value(),
                    timeout=30.0,
                    max_retries=2,
                )
            else:
                self._clients[provider] = AsyncOpenAI(
                    base_url=s.ollama_base_url,
                    api_key="ollama",
                    timeout=60.0,
                )
        return self._clients[provider]

    async def run(
        self,
        config: VerticalConfig,
        history: Sequence[Turn],
        options: RunOptions | None = None,
    ) -> str:
        """Produce the agent's next reply.

        Args:
            config: Vertical persona, tools and compliance text
            history: Conversation so far, oldest first
            options: Optional provider/model overrides

        Returns:
            Reply text, never empty

        Raises:
            LLMConfigurationError: When the requested provider is not configured
            LLMRateLimitError: When rate limit exceeded
            LLMConnectionError: When API unreachable
            LLMAuthenticationError: When API key invalid
            LLMServiceError: For other API errors
        """
        options = options or RunOptions()
        provider = options.provider or self.default_provider()
        if provider is None:
            raise LLMConfigurationError(
                "No LLM provider configured. Set GROQ_API_KEY and/or OPENAI_API_KEY."
            )
        if provider not in self.available_providers():
            raise LLMConfigurationError(f"No API key for {provider}")

        client = self.client(provider)
        model = options.model or self.default_model(provider)
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(config)},
            *format_history(history),
        ]
        tools = tool_definitions(config.tools)

        start_time = time.perf_counter()
        completion = await self._complete(provider, client, model, messages, tools)
        logger.debug(
            f"{provider}/{model} replied in {(time.perf_counter() - start_time) * 1000:.0f}ms"
        )

        if not completion.choices:
            return NO_RESPONSE_REPLY

        message = completion.choices[0].message
        if message.tool_calls:
            return await self._answer_tool_call(
                provider, client, model, messages, message, config.tools
            )

        text = (message.content or "").strip()
        return text or EMPTY_REPLY

    async def _answer_tool_call(
        self,
        provider: ProviderName,
        client: Any,
        model: str,
        messages: list[dict[str, Any]],
        message: Any,
        permitted: Sequence[ToolName],
    ) -> str:
        """Run the first requested tool and ask the model to phrase the result."""
        call = message.tool_calls[0]
        try:
            arguments = json.loads(call.function.arguments or "{}")
        except json.JSONDecodeError:
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}

        result = await run_tool(call.function.name, arguments, permitted)

        follow_up = await self._complete(
            provider,
            client,
            model,
            [
                *messages,
                {
                    "role": "assistant",
                    "content": message.content or "",
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.function.name,
                                "arguments": call.function.arguments or "{}",
                            },
                        }
                    ],
                },
                {"role": "tool", "tool_call_id": call.id, "content": result},
            ],
            tools=[],
        )
        if not follow_up.choices:
            return TOOL_DONE_REPLY
        text = (follow_up.choices[0].message.content or "").strip()
        return text or TOOL_DONE_REPLY

    async def _complete(
        self,
        provider: ProviderName,
        client: Any,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> Any:
        """One chat completion, with SDK errors mapped to LLMServiceError."""
        sdk: Any = groq if provider == "groq" else openai
        request: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": self._settings.llm_max_tokens,
            "temperature": self._settings.llm_temperature,
        }
        if tools:
            request["tools"] = tools

        try:
            return await client.chat.completions.create(**request)

        except sdk.RateLimitError as e:
            logger.warning(f"{provider} rate limit hit: {e}")
            raise LLMRateLimitError(
                "Rate limit exceeded",
                retry_after=self._extract_retry_after(e),
            ) from e

        except sdk.APIConnectionError as e:
            logger.error(f"{provider} connection error: {e.__cause__}")
            raise LLMConnectionError(f"Failed to connect to {provider} API") from e

        except sdk.AuthenticationError as e:
            logger.error(f"{provider} authentication failed")
            raise LLMAuthenticationError(f"Invalid {provider} API key") from e

        except sdk.APIStatusError as e:
            logger.error(f"{provider} API error: {e.status_code} - {e.message}")
            raise LLMServiceError(f"{provider} API error: {e.status_code}") from e

    def _extract_retry_after(self, error: Any) -> float:
        """Extract retry-after from rate limit error."""
        response = getattr(error, "response", None)
        if response is not None:
            retry_after = response.headers.get("retry-after")
            if retry_after:
                try:
                    return float(retry_after)
                except ValueError:
                    pass
        return 60.0
