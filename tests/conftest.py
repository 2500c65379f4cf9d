"""Shared pytest fixtures for voicedesk tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from typing import Any

import pytest

from voicedesk.config import Settings
from voicedesk.core.orchestrator import SessionServices
from voicedesk.services.llm.protocol import RunOptions, Turn
from voicedesk.services.stt.protocol import TranscriptCallback, TranscriptEvent
from voicedesk.verticals.models import VerticalConfig


def build_settings(**overrides) -> Settings:
    """Create a Settings object with safe test defaults."""
    base = {
        "groq_api_key": "test-groq-key",
        "deepgram_api_key": "test-deepgram-key",
        "plivo_auth_id": "test-plivo-id",
        "plivo_auth_token": "test-plivo-token",
        "openai_api_key": None,
        "elevenlabs_api_key": None,
        "plivo_phone_number": "+15550001111",
        "public_base_url": None,
        "custom_verticals_path": None,
        "silence_timeout_seconds": 5.0,
        "max_turn_duration_seconds": 5.0,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a factory to build Settings with overrides."""
    return build_settings


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default Settings fixture."""
    return settings_factory()


async def wait_until(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until condition() holds, failing the test after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


# =============================================================================
# Fakes
# =============================================================================


class FakeBridge:
    """Transcription bridge that turns b"say:<text>" frames into final transcripts."""

    def __init__(self, call_id: str, on_transcript: TranscriptCallback) -> None:
        self.call_id = call_id
        self.on_transcript = on_transcript
        self.frames: list[bytes] = []
        self.start_count = 0
        self.stop_count = 0
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        self.start_count += 1
        self._started = True

    def write(self, frame: bytes) -> None:
        self.frames.append(frame)
        if frame.startswith(b"say:"):
            self.emit(frame[4:].decode("utf-8"))

    def emit(self, text: str, is_final: bool = True) -> None:
        self.on_transcript(TranscriptEvent(text=text, is_final=is_final))

    async def stop(self) -> None:
        self.stop_count += 1
        self._started = False


class FakeReasoning:
    """Reasoning service returning a fixed reply, an error, or blocking."""

    def __init__(self, reply: str = "How can I assist?") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[VerticalConfig, tuple[Turn, ...]]] = []

    async def run(
        self,
        config: VerticalConfig,
        history: Any,
        options: RunOptions | None = None,
    ) -> str:
        self.calls.append((config, tuple(history)))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSynthesizer:
    """Synthesizer returning b"audio:<text>" so tests can read what was spoken."""

    def __init__(self) -> None:
        self.texts: list[str] = []
        self.fail_on: set[str] = set()
        self.silent = False

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        if text in self.fail_on:
            raise RuntimeError(f"synthesis failed for {text!r}")
        if self.silent:
            return b""
        return b"audio:" + text.encode("utf-8")


class FakeSender:
    """Audio sender that records every payload."""

    def __init__(self) -> None:
        self.sent: list[bytes] = []

    async def send_audio(self, audio: bytes) -> None:
        self.sent.append(audio)


class FakeStack:
    """Fake session collaborators wired into SessionServices."""

    def __init__(self, settings: Settings) -> None:
        self.reasoning = FakeReasoning()
        self.synthesizer = FakeSynthesizer()
        self.bridges: list[FakeBridge] = []
        self.services = SessionServices(
            settings=settings,
            reasoning=self.reasoning,
            synthesizer=self.synthesizer,
            bridge_factory=self._bridge,
        )

    def _bridge(self, call_id: str, on_transcript: TranscriptCallback) -> FakeBridge:
        bridge = FakeBridge(call_id, on_transcript)
        self.bridges.append(bridge)
        return bridge


@pytest.fixture
def fake_stack(settings: Settings) -> FakeStack:
    return FakeStack(settings)


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture
def test_client(settings: Settings, fake_stack: FakeStack) -> Generator:
    """FastAPI TestClient with fake session services."""
    from fastapi.testclient import TestClient

    from voicedesk.main import create_app

    app = create_app(settings, services=fake_stack.services)

    with TestClient(app) as client:
        yield client
