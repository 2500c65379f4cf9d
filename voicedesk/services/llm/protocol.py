"""Reasoning engine protocol and data types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from voicedesk.verticals.models import VerticalConfig

ProviderName = Literal["groq", "openai", "ollama"]

PROVIDERS: tuple[ProviderName, ...] = ("groq", "openai", "ollama")


class Role(str, Enum):
    """Speaker of a conversation turn."""

    CALLER = "caller"
    AGENT = "agent"

    @property
    def chat_role(self) -> str:
        """Role name in chat-completions messages."""
        return "user" if self is Role.CALLER else "assistant"


@dataclass(frozen=True, slots=True)
class Turn:
    """A single turn in conversation history."""

    role: Role
    text: str


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Per-request overrides for provider and model."""

    provider: ProviderName | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class ModelOption:
    """A selectable chat model."""

    id: str
    name: str


OPENAI_MODELS: tuple[ModelOption, ...] = (
    ModelOption("gpt-4o-mini", "GPT-4o mini"),
    ModelOption("gpt-4o", "GPT-4o"),
    ModelOption("gpt-4-turbo", "GPT-4 Turbo"),
    ModelOption("gpt-3.5-turbo", "GPT-3.5 Turbo"),
)

GROQ_MODELS: tuple[ModelOption, ...] = (
    ModelOption("llama-3.3-70b-versatile", "Llama 3.3 70B Versatile"),
    ModelOption("llama-3.1-70b-versatile", "Llama 3.1 70B Versatile"),
    ModelOption("llama-3.1-8b-instant", "Llama 3.1 8B Instant (fast)"),
    ModelOption("llama-3.2-90b-vision-preview", "Llama 3.2 90B Vision (preview)"),
    ModelOption("llama-3.2-11b-vision-preview", "Llama 3.2 11B Vision (preview)"),
    ModelOption("llama-3.2-3b-preview", "Llama 3.2 3B (preview)"),
    ModelOption("llama-3.2-1b-preview", "Llama 3.2 1B (preview)"),
    ModelOption("mixtral-8x7b-32768", "Mixtral 8x7B"),
)


class ReasoningService(Protocol):
    """Protocol for reasoning engine implementations."""

    async def run(
        self,
        config: VerticalConfig,
        history: Sequence[Turn],
        options: RunOptions | None = None,
    ) -> str:
        """Produce the agent's next reply for the conversation so far.

        Raises:
            LLMServiceError: On provider or configuration failure.
        """
        ...
