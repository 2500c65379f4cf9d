"""FastAPI application entry point.

voicedesk - per-call voice agent sessions over Plivo audio streams.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from voicedesk import __version__
from voicedesk.api.routes import health, metrics, plivo_webhook, testing
from voicedesk.api.websocket import audio_stream_endpoint, browser_voice_endpoint
from voicedesk.api.websocket.browser_voice import BrowserBridgeFactory
from voicedesk.config import Settings, get_settings
from voicedesk.core.orchestrator import SessionServices
from voicedesk.core.registry import SessionRegistry
from voicedesk.logging_config import setup_logging
from voicedesk.services.llm.brain import ReasoningEngine
from voicedesk.services.profiles import WIDEBAND, get_profile
from voicedesk.services.stt.deepgram import DeepgramBridge
from voicedesk.services.stt.protocol import TranscriptCallback
from voicedesk.services.tts.synthesizer import SpeechSynthesizer
from voicedesk.verticals.registry import VerticalRegistry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler.

    Startup:
    - Initialize logging

    Shutdown:
    - Close active call sessions
    """
    settings: Settings = app.state.settings

    setup_logging(
        level=settings.log_level,
        enable_file=settings.is_production,
    )

    yield

    await app.state.sessions.close_all()


def create_app(
    settings: Settings | None = None,
    *,
    verticals: VerticalRegistry | None = None,
    reasoning: ReasoningEngine | None = None,
    services: SessionServices | None = None,
    browser_synthesizer: SpeechSynthesizer | None = None,
    browser_bridge_factory: BrowserBridgeFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every collaborator can be injected; missing ones are built from settings.
    """
    settings = settings or get_settings()
    profile = get_profile(settings.stream_audio_profile)

    verticals = verticals or VerticalRegistry.from_settings(settings)
    reasoning = reasoning or ReasoningEngine(settings)
    if services is None:
        services = SessionServices.from_settings(profile, settings)
        services.reasoning = reasoning

    if browser_bridge_factory is None:

        def browser_bridge_factory(on_transcript: TranscriptCallback) -> DeepgramBridge:
            return DeepgramBridge(WIDEBAND, on_transcript, settings=settings, label="browser")

    app = FastAPI(
        title="voicedesk API",
        description="Per-call voice agent sessions over Plivo audio streams",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.profile = profile
    app.state.verticals = verticals
    app.state.reasoning = reasoning
    app.state.sessions = SessionRegistry(
        verticals,
        services,
        max_sessions=settings.max_concurrent_calls,
    )
    app.state.browser_synthesizer = browser_synthesizer or SpeechSynthesizer(WIDEBAND, settings)
    app.state.browser_bridge_factory = browser_bridge_factory

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # Plivo webhook routes
    app.include_router(plivo_webhook.router, prefix="/api", tags=["Plivo"])

    # Metrics endpoint for Prometheus scraping
    app.include_router(metrics.router, tags=["Observability"])

    # Single-stage test routes
    app.include_router(testing.router, tags=["Testing"])

    # WebSocket endpoint for audio streaming
    @app.websocket("/ws/audio/{call_id}")
    async def audio_ws(websocket: WebSocket, call_id: str, vertical: str | None = None):
        """WebSocket endpoint for Plivo audio streaming."""
        await audio_stream_endpoint(websocket, call_id, vertical)

    @app.websocket("/test/voice")
    async def browser_voice_ws(websocket: WebSocket):
        """WebSocket endpoint for the browser microphone test."""
        await browser_voice_endpoint(websocket)

    return app


# Application instance
app = create_app()
