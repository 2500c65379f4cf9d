"""Outbound audio framing for the Plivo stream."""

from __future__ import annotations

import base64
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from voicedesk.core.session import CallSession
from voicedesk.logging_config import get_logger

logger: Any = get_logger(__name__)


class PlivoAudioSender:
    """Sends audio to the caller over the stream WebSocket.

    Implements the AudioSender protocol for ResponsePipeline. Does nothing
    until the stream id is known or after the socket has closed.
    """

    def __init__(self, websocket: WebSocket, session: CallSession) -> None:
        self._websocket = websocket
        self._session = session

    @property
    def connected(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_audio(self, audio: bytes) -> None:
        """Send one encoded audio payload as a media event."""
        if not audio:
            return

        stream_id = self._session.stream_id
        if not stream_id or not self.connected:
            logger.debug(f"Stream not ready for call {self._session.call_id}, dropping audio")
            return

        message = {
            "event": "media",
            "streamId": stream_id,
            "media": {
                "payload": base64.b64encode(audio).decode("ascii"),
            },
        }

        try:
            await self._websocket.send_json(message)
        except Exception as e:
            logger.error(f"Failed to send audio for call {self._session.call_id}: {e}")
