"""Deepgram streaming STT bridge for one call.

Audio frames are queued and pushed to a Deepgram live connection by a single
pump task, so they reach the provider in arrival order. The Deepgram SDK
delivers events on its own thread; every event is handed back to the event
loop captured at start() before it touches bridge state.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger, preview_text
from voicedesk.observability.metrics import record_stt_reconnect
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.stt.exceptions import STTConnectionError
from voicedesk.services.stt.protocol import TranscriptCallback, TranscriptEvent

if TYPE_CHECKING:
    from deepgram import DeepgramClient

logger: Any = get_logger(__name__)

STOP_TIMEOUT_SECONDS = 5.0


class DeepgramBridge:
    """Streaming transcription for one call over a Deepgram WebSocket.

    - start() opens the connection in the background; frames written while
      connecting are buffered and sent once it is up
    - final segments are joined and emitted as one final event when Deepgram
      reports speech_final or UtteranceEnd
    - a provider error or close resets the bridge to not-connected, so the
      next start() reconnects
    - without a Deepgram key the bridge stays disabled and drops all frames
    """

    def __init__(
        self,
        profile: AudioProfile,
        on_transcript: TranscriptCallback,
        *,
        settings: Settings | None = None,
        client: DeepgramClient | None = None,
        label: str = "call",
    ) -> None:
        self._settings = settings or get_settings()
        self._profile = profile
        self._on_transcript = on_transcript
        self._client = client
        self._label = label

        self._loop: asyncio.AbstractEventLoop | None = None
        self._frames: asyncio.Queue[bytes | None] | None = None
        self._pump: asyncio.Task[None] | None = None
        self._live: Any = None
        self._final_parts: list[str] = []
        self._connections = 0
        self._stopped = False
        self._disabled_logged = False

    @property
    def profile(self) -> AudioProfile:
        return self._profile

    @property
    def enabled(self) -> bool:
        """True when a client was injected or a Deepgram key is configured."""
        return self._client is not None or self._settings.deepgram_api_key is not None

    @property
    def started(self) -> bool:
        return self._pump is not None and not self._pump.done()

    @property
    def connected(self) -> bool:
        return self._live is not None

    @property
    def client(self) -> DeepgramClient:
        """Lazy initialization of Deepgram client."""
        if self._client is None:
            from deepgram import DeepgramClient

            api_key = self._settings.deepgram_api_key
            self._client = DeepgramClient(api_key.get_secret_value() if api_key else "")
        return self._client

    def start(self) -> None:
        """Open the Deepgram connection in the background.

        No-op when already started, stopped, or when STT is not configured.
        """
        if self._stopped or self.started:
            return

        if not self.enabled:
            if not self._disabled_logged:
                logger.warning(f"DEEPGRAM_API_KEY not set, transcription disabled for {self._label}")
                self._disabled_logged = True
            return

        if self._connections:
            record_stt_reconnect()
            logger.info(f"Reconnecting Deepgram stream for {self._label}")

        self._connections += 1
        self._final_parts.clear()
        self._loop = asyncio.get_running_loop()
        self._frames = asyncio.Queue()
        self._pump = self._loop.create_task(self._run(), name=f"deepgram-{self._label}")

    def write(self, frame: bytes) -> None:
        """Queue one audio frame for the provider."""
        if self._stopped:
            logger.debug(f"Dropping audio frame after stop for {self._label}")
            return
        if not frame:
            return
        if self._frames is None or not self.started:
            return
        self._frames.put_nowait(frame)

    async def stop(self) -> None:
        """Finish the stream and wait for the pump to close it."""
        if self._stopped:
            return
        self._stopped = True

        pump = self._pump
        if pump is None or pump.done():
            return

        if self._frames is not None:
            self._frames.put_nowait(None)

        try:
            await asyncio.wait_for(asyncio.shield(pump), timeout=STOP_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning(f"Deepgram stream for {self._label} did not close in time")
            pump.cancel()

    async def _run(self) -> None:
        """Connect, then drain the frame queue in order."""
        frames = self._frames
        assert frames is not None
        live: Any = None

        try:
            live = await asyncio.to_thread(self._connect)
            if live is None:
                return
            self._live = live
            logger.debug(f"Deepgram stream connected for {self._label}")

            while True:
                frame = await frames.get()
                if frame is None or self._live is not live:
                    break
                await asyncio.to_thread(live.send, frame)

        except STTConnectionError as e:
            logger.error(f"Deepgram connect failed for {self._label}: {e}")

        except Exception as e:
            logger.error(f"Deepgram stream error for {self._label}: {e}")

        finally:
            self._live = None
            if live is not None:
                try:
                    await asyncio.to_thread(live.finish)
                except Exception as e:
                    logger.debug(f"Deepgram finish failed for {self._label}: {e}")
            if self._frames is frames:
                self._frames = None

    def _connect(self) -> Any:
        """Open the live connection. Runs in a worker thread."""
        from deepgram import LiveOptions, LiveTranscriptionEvents

        loop = self._loop
        assert loop is not None

        def on_message(self_live: Any, result: Any, **kwargs: Any) -> None:
            loop.call_soon_threadsafe(self._handle_result, result)

        def on_utterance_end(self_live: Any, utterance_end: Any, **kwargs: Any) -> None:
            loop.call_soon_threadsafe(self._flush_final)

        def on_error(self_live: Any, error: Any, **kwargs: Any) -> None:
            logger.error(f"Deepgram WebSocket error for {self._label}: {error}")
            loop.call_soon_threadsafe(self._handle_disconnect, self_live)

        def on_close(self_live: Any, close: Any, **kwargs: Any) -> None:
            logger.debug(f"Deepgram WebSocket closed for {self._label}")
            loop.call_soon_threadsafe(self._handle_disconnect, self_live)

        options = LiveOptions(
            model=self._settings.deepgram_stt_model,
            language=self._settings.stt_language,
            smart_format=True,
            punctuate=True,
            interim_results=True,
            utterance_end_ms=str(self._profile.finalization_silence_ms),
            vad_events=True,
            encoding=self._profile.encoding,
            sample_rate=self._profile.sample_rate,
            channels=self._profile.channels,
        )

        live = self.client.listen.websocket.v("1")
        live.on(LiveTranscriptionEvents.Transcript, on_message)
        live.on(LiveTranscriptionEvents.UtteranceEnd, on_utterance_end)
        live.on(LiveTranscriptionEvents.Error, on_error)
        live.on(LiveTranscriptionEvents.Close, on_close)

        if not live.start(options):
            raise STTConnectionError("Failed to connect to Deepgram")

        # stop() may have given up on the pump while this thread was connecting
        if self._stopped:
            logger.debug(f"Deepgram connected after stop for {self._label}, closing")
            live.finish()
            return None
        return live

    def _handle_result(self, result: Any) -> None:
        try:
            alternatives = result.channel.alternatives
            text = alternatives[0].transcript.strip() if alternatives else ""
            is_final = bool(getattr(result, "is_final", False))
            speech_final = bool(getattr(result, "speech_final", False))
        except AttributeError as e:
            logger.error(f"Unexpected Deepgram result for {self._label}: {e}")
            return

        if is_final:
            if text:
                self._final_parts.append(text)
            if speech_final:
                self._flush_final()
        elif text:
            self._emit(TranscriptEvent(text=text, is_final=False))

    def _flush_final(self) -> None:
        text = " ".join(self._final_parts).strip()
        self._final_parts.clear()
        if text:
            logger.debug(f"Final transcript for {self._label}: {preview_text(text)}")
            self._emit(TranscriptEvent(text=text, is_final=True))

    def _handle_disconnect(self, live: Any) -> None:
        if self._live is None or live is not self._live:
            return
        self._live = None
        # Wake the pump so it exits and the next start() reconnects
        if self._frames is not None:
            self._frames.put_nowait(None)

    def _emit(self, event: TranscriptEvent) -> None:
        try:
            self._on_transcript(event)
        except Exception as e:
            logger.error(f"Transcript handler failed for {self._label}: {e}")
