"""Tests for the WebSocket endpoints (Plivo audio stream and browser voice test)."""

from __future__ import annotations

import base64
import time
from collections.abc import Callable

import pytest
from conftest import FakeBridge, FakeStack
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from voicedesk.config import DEFAULT_FALLBACK_PHRASE
from voicedesk.main import create_app
from voicedesk.services.llm.protocol import Role, Turn
from voicedesk.verticals.builtin import BUILTIN_VERTICALS


def start_event(stream_id: str, vertical: str | None = None) -> dict:
    message: dict = {"event": "start", "start": {"streamId": stream_id}}
    if vertical:
        message["start"]["customParameters"] = {"vertical": vertical}
    return message


def media_event(audio: bytes) -> dict:
    return {"event": "media", "media": {"payload": base64.b64encode(audio).decode("ascii")}}


def spoken(message: dict) -> str:
    """Text behind a media event produced by FakeSynthesizer."""
    assert message["event"] == "media"
    audio = base64.b64decode(message["media"]["payload"])
    assert audio.startswith(b"audio:")
    return audio[len(b"audio:"):].decode("utf-8")


def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        time.sleep(0.01)


class TestAudioStreamStart:
    """Tests for the start event."""

    def test_start_plays_greeting(self, test_client) -> None:
        """The vertical's greeting is sent as a media event on the stream."""
        with test_client.websocket_connect("/ws/audio/call-ws-001") as websocket:
            websocket.send_json(start_event("stream-001", vertical="support"))

            message = websocket.receive_json()

            assert message["streamId"] == "stream-001"
            assert spoken(message) == BUILTIN_VERTICALS["support"].greeting

    def test_vertical_from_query_parameter(self, test_client) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-002?vertical=banking") as websocket:
            websocket.send_json(start_event("stream-002"))

            assert spoken(websocket.receive_json()) == BUILTIN_VERTICALS["banking"].greeting

    def test_unknown_vertical_uses_default(self, test_client) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-003") as websocket:
            websocket.send_json(start_event("stream-003", vertical="astrology"))

            assert spoken(websocket.receive_json()) == BUILTIN_VERTICALS["sales"].greeting
            session = test_client.app.state.sessions.get("call-ws-003").session
            assert session.vertical == "sales"

    def test_top_level_stream_id(self, test_client) -> None:
        """streamId may also arrive at the top level of the start event."""
        with test_client.websocket_connect("/ws/audio/call-ws-004") as websocket:
            websocket.send_json({"event": "start", "streamId": "stream-004"})

            assert websocket.receive_json()["streamId"] == "stream-004"

    def test_invalid_json_is_ignored(self, test_client) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-005") as websocket:
            websocket.send_text("not json")
            websocket.send_text("[1, 2, 3]")
            websocket.send_json(start_event("stream-005"))

            assert spoken(websocket.receive_json()) == BUILTIN_VERTICALS["sales"].greeting


class TestAudioStreamTurns:
    """Tests for caller turns over the stream."""

    def test_caller_turn_gets_reply(self, test_client, fake_stack: FakeStack) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-010") as websocket:
            websocket.send_json(start_event("stream-010", vertical="support"))
            websocket.receive_json()  # greeting

            websocket.send_json(media_event(b"say:I need help"))
            reply = websocket.receive_json()

            assert spoken(reply) == "How can I assist?"
            session = test_client.app.state.sessions.get("call-ws-010").session
            assert session.history == (
                Turn(Role.CALLER, "I need help"),
                Turn(Role.AGENT, "How can I assist?"),
            )
            config, history = fake_stack.reasoning.calls[0]
            assert config is BUILTIN_VERTICALS["support"]
            assert history == (Turn(Role.CALLER, "I need help"),)

    def test_audio_frames_reach_bridge(self, test_client, fake_stack: FakeStack) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-011") as websocket:
            websocket.send_json(start_event("stream-011"))
            websocket.receive_json()

            websocket.send_json(media_event(b"\xff" * 160))
            websocket.send_json(media_event(b"\x7f" * 160))

            wait_for(lambda: bool(fake_stack.bridges) and len(fake_stack.bridges[0].frames) == 2)
            bridge = fake_stack.bridges[0]
            assert bridge.frames == [b"\xff" * 160, b"\x7f" * 160]
            assert bridge.start_count == 1

    def test_media_before_start_is_dropped(self, test_client, fake_stack: FakeStack) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-012") as websocket:
            websocket.send_json(media_event(b"say:too early"))
            websocket.send_json({"event": "media", "media": {"payload": "***"}})
            websocket.send_json(start_event("stream-012"))

            websocket.receive_json()  # greeting

            assert fake_stack.bridges == []
            assert fake_stack.reasoning.calls == []

    def test_reasoning_failure_speaks_fallback(self, test_client, fake_stack: FakeStack) -> None:
        fake_stack.reasoning.error = RuntimeError("model unavailable")

        with test_client.websocket_connect("/ws/audio/call-ws-013") as websocket:
            websocket.send_json(start_event("stream-013"))
            websocket.receive_json()

            websocket.send_json(media_event(b"say:hello?"))

            assert spoken(websocket.receive_json()) == DEFAULT_FALLBACK_PHRASE


class TestAudioStreamTeardown:
    """Tests for stop events, hangups and capacity."""

    def test_stop_event_closes_session(self, test_client, fake_stack: FakeStack) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-020") as websocket:
            websocket.send_json(start_event("stream-020"))
            websocket.receive_json()
            websocket.send_json(media_event(b"\x00" * 160))

            websocket.send_json({"event": "stop"})

            wait_for(lambda: test_client.app.state.sessions.get("call-ws-020") is None)
            assert fake_stack.bridges[0].stop_count == 1

    def test_hangup_webhook_closes_session(self, test_client) -> None:
        with test_client.websocket_connect("/ws/audio/call-ws-021") as websocket:
            websocket.send_json(start_event("stream-021"))
            websocket.receive_json()
            assert test_client.get("/health").json()["active_calls"] == 1

            response = test_client.post(
                "/api/plivo/webhook/hangup",
                data={"CallUUID": "call-ws-021", "Duration": "12", "HangupCause": "NORMAL"},
            )

            assert response.json() == {"ok": True}
            assert test_client.get("/health").json()["active_calls"] == 0

    def test_stream_rejected_at_capacity(self, settings_factory) -> None:
        settings = settings_factory(max_concurrent_calls=1)
        app = create_app(settings, services=FakeStack(settings).services)

        with TestClient(app) as client:
            with client.websocket_connect("/ws/audio/call-ws-030") as first:
                first.send_json(start_event("stream-030"))
                first.receive_json()

                with client.websocket_connect("/ws/audio/call-ws-031") as second:
                    second.send_json(start_event("stream-031"))

                    with pytest.raises(WebSocketDisconnect) as exc_info:
                        second.receive_json()

                assert exc_info.value.code == 1013
                assert app.state.sessions.get("call-ws-030") is not None


class TestBrowserVoice:
    """Tests for the /test/voice browser microphone WebSocket."""

    def test_transcripts_are_relayed(self, settings, fake_stack: FakeStack) -> None:
        bridges: list[FakeBridge] = []

        def bridge_factory(on_transcript) -> FakeBridge:
            bridge = FakeBridge("browser", on_transcript)
            bridges.append(bridge)
            return bridge

        app = create_app(
            settings, services=fake_stack.services, browser_bridge_factory=bridge_factory
        )

        with TestClient(app) as client:
            with client.websocket_connect("/test/voice") as websocket:
                websocket.send_bytes(b"\x00\x00" * 160)
                websocket.send_bytes(b"say:hello there")

                assert websocket.receive_json() == {"transcript": "hello there", "isFinal": True}

            wait_for(lambda: bridges[0].stop_count == 1)

        assert bridges[0].frames[0] == b"\x00\x00" * 160
        assert fake_stack.reasoning.calls == []
