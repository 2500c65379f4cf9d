"""Browser microphone test: linear16 16kHz frames in, transcripts out.

Each binary message is one audio frame. Transcripts are sent back as
{"transcript": str, "isFinal": bool}. No reasoning or synthesis happens here.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from typing import Any

from fastapi import WebSocket

from voicedesk.logging_config import get_logger
from voicedesk.services.stt.protocol import (
    TranscriptCallback,
    TranscriptEvent,
    TranscriptionBridge,
)

logger: Any = get_logger(__name__)

BrowserBridgeFactory = Callable[[TranscriptCallback], TranscriptionBridge]


async def browser_voice_endpoint(websocket: WebSocket) -> None:
    """Relay browser audio to a wideband transcription bridge."""
    await websocket.accept()
    logger.info("Browser voice test connected")

    bridge_factory: BrowserBridgeFactory = websocket.app.state.browser_bridge_factory
    outbox: asyncio.Queue[TranscriptEvent] = asyncio.Queue()
    bridge = bridge_factory(outbox.put_nowait)

    async def relay_transcripts() -> None:
        while True:
            event = await outbox.get()
            await websocket.send_json({"transcript": event.text, "isFinal": event.is_final})

    relay = asyncio.create_task(relay_transcripts(), name="browser-voice-relay")
    bridge.start()

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            frame = message.get("bytes")
            if not frame:
                continue
            if not bridge.started:
                bridge.start()
            bridge.write(frame)

    except Exception as e:
        logger.error(f"Browser voice test error: {e}")

    finally:
        await bridge.stop()
        relay.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await relay
        logger.info("Browser voice test disconnected")
