"""Reasoning engine services (Groq, OpenAI, Ollama)."""

from voicedesk.services.llm.brain import ReasoningEngine, build_system_prompt
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
    ModelOption,
    ProviderName,
    ReasoningService,
    Role,
    RunOptions,
    Turn,
)
from voicedesk.services.llm.tools import run_tool, tool_definitions

__all__ = [
    # Protocol and types
    "ReasoningService",
    "Role",
    "Turn",
    "RunOptions",
    "ProviderName",
    "ModelOption",
    "GROQ_MODELS",
    "OPENAI_MODELS",
    # Implementation
    "ReasoningEngine",
    "build_system_prompt",
    "run_tool",
    "tool_definitions",
    # Exceptions
    "LLMServiceError",
    "LLMRateLimitError",
    "LLMConnectionError",
    "LLMAuthenticationError",
    "LLMConfigurationError",
]
