"""WebSocket handler for the Plivo bidirectional audio stream.

Protocol (JSON text messages):
- start: {"event": "start", "streamId", "customParameters": {"vertical"}}
  (the same keys may be nested under "start")
- media: {"event": "media", "media": {"payload": base64 audio}}
- stop:  {"event": "stop"}

Outbound audio is sent as media events by PlivoAudioSender.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect, status

from voicedesk.api.websocket.sender import PlivoAudioSender
from voicedesk.core.orchestrator import SessionOrchestrator
from voicedesk.core.registry import CallCapacityError, SessionRegistry
from voicedesk.core.session import CallSession
from voicedesk.logging_config import get_logger

logger: Any = get_logger(__name__)


def _start_fields(message: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """streamId and customParameters from a start event, top level or nested."""
    nested = message.get("start")
    if not isinstance(nested, dict):
        nested = {}

    stream_id = message.get("streamId") or nested.get("streamId")
    params = message.get("customParameters") or nested.get("customParameters") or {}
    if not isinstance(params, dict):
        params = {}
    return (str(stream_id) if stream_id else None), params


def _decode_media(message: dict[str, Any]) -> bytes | None:
    media = message.get("media")
    if not isinstance(media, dict):
        return None
    payload = media.get("payload")
    if not payload or not isinstance(payload, str):
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None


async def audio_stream_endpoint(
    websocket: WebSocket,
    call_id: str,
    vertical: str | None = None,
) -> None:
    """Handle one call's audio stream.

    Args:
        websocket: Stream connection
        call_id: Call identifier from the stream URL
        vertical: ?vertical= query parameter; customParameters.vertical wins
    """
    await websocket.accept()
    logger.info(f"WebSocket connected for call {call_id}")

    sessions: SessionRegistry = websocket.app.state.sessions
    orchestrator: SessionOrchestrator | None = None

    def sender_factory(session: CallSession) -> PlivoAudioSender:
        return PlivoAudioSender(websocket, session)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received for call {call_id}")
                continue
            if not isinstance(message, dict):
                logger.warning(f"Non-object message received for call {call_id}")
                continue

            event = message.get("event", "")

            if event == "start":
                stream_id, params = _start_fields(message)
                if orchestrator is not None:
                    orchestrator.on_session_start(stream_id)
                    continue

                requested = params.get("vertical") or vertical
                try:
                    orchestrator = sessions.open(
                        call_id,
                        vertical_id=str(requested) if requested else None,
                        sender_factory=sender_factory,
                    )
                except CallCapacityError:
                    logger.warning(f"Stream for call {call_id} rejected: system at capacity")
                    await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
                    return

                orchestrator.on_session_start(stream_id)

            elif event == "media":
                if orchestrator is None:
                    logger.debug(f"Media before start for call {call_id}, dropping")
                    continue

                frame = _decode_media(message)
                if frame is None:
                    logger.warning(f"Undecodable media payload for call {call_id}")
                    continue

                orchestrator.on_audio_frame(frame)

            elif event == "stop":
                logger.info(f"Stream stopped for call {call_id}")
                break

            else:
                logger.debug(f"Ignoring {event!r} event for call {call_id}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for call {call_id}")

    except Exception as e:
        logger.error(f"WebSocket error for call {call_id}: {e}")

    finally:
        if orchestrator is not None:
            await orchestrator.on_session_stop()
