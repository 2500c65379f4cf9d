"""Developer test endpoints for exercising one stage at a time.

Provides:
- Vertical and model listings for the browser test page
- One reasoning call (GET/POST /test/brain)
- Browser-playable synthesis (GET /test/tts)
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from voicedesk.api.deps import get_browser_synthesizer, get_reasoning, get_verticals
from voicedesk.logging_config import get_logger
from voicedesk.services.llm.brain import ReasoningEngine
from voicedesk.services.llm.exceptions import LLMConfigurationError
from voicedesk.services.llm.protocol import PROVIDERS, ProviderName, Role, RunOptions, Turn
from voicedesk.services.tts.exceptions import TTSServiceError
from voicedesk.services.tts.protocol import BrowserEncoding, BrowserSynthesisOptions
from voicedesk.services.tts.synthesizer import SpeechSynthesizer
from voicedesk.verticals.models import UnknownVerticalError, VerticalConfig
from voicedesk.verticals.registry import VerticalRegistry

router = APIRouter(prefix="/test", tags=["Testing"])
logger: Any = get_logger(__name__)

PROVIDER_NAMES: dict[str, str] = {"groq": "Groq", "openai": "OpenAI", "ollama": "Ollama"}


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class BrainRequest(BaseModel):
    message: str = "I'm interested."
    vertical: str | None = None
    provider: ProviderName | None = None
    model: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)


def _resolve_vertical(verticals: VerticalRegistry, vertical: str | None) -> VerticalConfig:
    if not vertical:
        return verticals.default
    try:
        return verticals.get(vertical)
    except UnknownVerticalError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _run_options(
    reasoning: ReasoningEngine,
    provider: str | None,
    model: str | None,
) -> RunOptions:
    if provider and provider not in PROVIDERS:
        raise HTTPException(status_code=400, detail=f"Unknown provider: {provider}")
    return RunOptions(
        provider=provider or reasoning.default_provider(),  # type: ignore[arg-type]
        model=model or None,
    )


async def _reply(
    reasoning: ReasoningEngine,
    config: VerticalConfig,
    history: list[Turn],
    options: RunOptions,
) -> str:
    try:
        return await reasoning.run(config, history, options)
    except LLMConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Test brain call failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/verticals")
async def list_verticals(
    verticals: VerticalRegistry = Depends(get_verticals),
) -> dict[str, Any]:
    return {
        "verticals": [
            {"id": vertical_id, "name": verticals.get(vertical_id).name}
            for vertical_id in verticals.ids()
        ],
        "defaultVertical": verticals.default_id,
    }


@router.get("/models")
async def list_models(
    reasoning: ReasoningEngine = Depends(get_reasoning),
) -> dict[str, Any]:
    """Configured reasoning providers and their selectable models."""
    providers = [
        {
            "id": provider,
            "name": PROVIDER_NAMES[provider],
            "models": [{"id": m.id, "name": m.name} for m in reasoning.models(provider)],
            "defaultModel": reasoning.default_model(provider),
        }
        for provider in reasoning.available_providers()
    ]
    return {"providers": providers, "defaultProvider": reasoning.default_provider()}


@router.get("/brain")
async def brain_single_message(
    message: str = "I'm interested in learning more.",
    vertical: str | None = None,
    provider: str | None = None,
    model: str | None = None,
    verticals: VerticalRegistry = Depends(get_verticals),
    reasoning: ReasoningEngine = Depends(get_reasoning),
) -> dict[str, Any]:
    """One reasoning call for a single caller message."""
    config = _resolve_vertical(verticals, vertical)
    options = _run_options(reasoning, provider, model)
    reply = await _reply(reasoning, config, [Turn(Role.CALLER, message)], options)
    return {
        "user": message,
        "bot": reply,
        "vertical": config.name,
        "provider": options.provider,
        "model": options.model or reasoning.default_model(options.provider or "groq"),
    }


@router.post("/brain")
async def brain_conversation(
    body: BrainRequest,
    verticals: VerticalRegistry = Depends(get_verticals),
    reasoning: ReasoningEngine = Depends(get_reasoning),
) -> dict[str, Any]:
    """One reasoning call for a whole conversation.

    When messages is given it is the history; otherwise message is the single
    caller turn.
    """
    config = _resolve_vertical(verticals, body.vertical)
    options = _run_options(reasoning, body.provider, body.model)

    if body.messages:
        history = [
            Turn(Role.CALLER if m.role == "user" else Role.AGENT, m.content)
            for m in body.messages
        ]
    else:
        history = [Turn(Role.CALLER, body.message)]

    reply = await _reply(reasoning, config, history, options)
    return {
        "reply": reply,
        "vertical": config.name,
        "provider": options.provider,
        "model": options.model or reasoning.default_model(options.provider or "groq"),
    }


@router.get("/tts")
async def synthesize_sample(
    text: str | None = None,
    model: str | None = None,
    encoding: BrowserEncoding = "mp3",
    sample_rate: int | None = Query(default=None, gt=0),
    bit_rate: int | None = Query(default=None, gt=0),
    synthesizer: SpeechSynthesizer = Depends(get_browser_synthesizer),
) -> Response:
    """Synthesize text to browser-playable audio."""
    if not text or not text.strip():
        raise HTTPException(status_code=400, detail="Missing text")
    if not synthesizer.configured:
        raise HTTPException(status_code=503, detail="No TTS provider configured")

    options = BrowserSynthesisOptions(
        model=model or None,
        encoding=encoding,
        sample_rate=sample_rate,
        bit_rate=bit_rate,
    )
    try:
        audio, content_type = await synthesizer.synthesize_for_browser(text, options)
    except TTSServiceError as e:
        logger.error(f"Test TTS failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if not audio:
        raise HTTPException(status_code=503, detail="No TTS provider configured")
    return Response(content=audio, media_type=content_type)
