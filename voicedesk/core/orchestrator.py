"""Per-call session orchestrator.

Routes stream events (start, media, stop) and transcript events for one call
to its transcription bridge, turn controller and response pipeline.

Caller turns are serialized: final transcripts go onto a queue drained by a
single worker task. The worker starts the next turn when the previous
pipeline finishes or when the turn timer releases it, and waits for the
greeting before the first turn.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from voicedesk.config import Settings, get_settings
from voicedesk.core.pipeline import AudioSender, ResponsePipeline
from voicedesk.core.session import CallSession
from voicedesk.core.turns import TurnController
from voicedesk.logging_config import get_logger, preview_text
from voicedesk.observability.metrics import (
    record_call_ended,
    record_call_started,
    record_turn_timeout,
)
from voicedesk.services.llm.brain import ReasoningEngine
from voicedesk.services.llm.protocol import ReasoningService
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.stt.deepgram import DeepgramBridge
from voicedesk.services.stt.protocol import (
    TranscriptCallback,
    TranscriptEvent,
    TranscriptionBridge,
)
from voicedesk.services.tts.protocol import Synthesizer
from voicedesk.services.tts.synthesizer import SpeechSynthesizer

logger: Any = get_logger(__name__)

BridgeFactory = Callable[[str, TranscriptCallback], TranscriptionBridge]


@dataclass
class SessionServices:
    """Collaborators shared by every session on one audio profile."""

    settings: Settings
    reasoning: ReasoningService
    synthesizer: Synthesizer
    bridge_factory: BridgeFactory

    @classmethod
    def from_settings(
        cls,
        profile: AudioProfile,
        settings: Settings | None = None,
    ) -> SessionServices:
        s = settings or get_settings()

        def bridge_factory(call_id: str, on_transcript: TranscriptCallback) -> DeepgramBridge:
            return DeepgramBridge(profile, on_transcript, settings=s, label=f"call {call_id}")

        return cls(
            settings=s,
            reasoning=ReasoningEngine(s),
            synthesizer=SpeechSynthesizer(profile, s),
            bridge_factory=bridge_factory,
        )


class SessionOrchestrator:
    """Top-level state holder for one call."""

    def __init__(
        self,
        session: CallSession,
        services: SessionServices,
        sender: AudioSender,
        *,
        on_closed: Callable[[CallSession], None] | None = None,
        on_silence: Callable[[], None] | None = None,
    ) -> None:
        self._session = session
        self._services = services
        self._on_closed = on_closed

        settings = services.settings
        self._turns = TurnController(
            session,
            silence_timeout=settings.silence_timeout_seconds,
            max_turn_duration=settings.max_turn_duration_seconds,
            on_silence=on_silence,
            on_turn_timeout=self._turn_timed_out,
        )
        self._pipeline = ResponsePipeline(
            session,
            services.reasoning,
            services.synthesizer,
            sender,
            fallback_phrase=settings.fallback_phrase,
            turns=self._turns,
        )

        self._bridge: TranscriptionBridge | None = None
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._greeting_task: asyncio.Task[bool] | None = None
        self._worker_task: asyncio.Task[None] | None = None
        self._pipeline_tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self._stopped = False

    @property
    def session(self) -> CallSession:
        return self._session

    @property
    def turns(self) -> TurnController:
        return self._turns

    @property
    def bridge(self) -> TranscriptionBridge | None:
        return self._bridge

    @property
    def greeting_task(self) -> asyncio.Task[bool] | None:
        return self._greeting_task

    @property
    def started(self) -> bool:
        return self._started

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def busy(self) -> bool:
        """True while a turn is queued or a response is in flight."""
        return not self._queue.empty() or bool(self._pipeline_tasks)

    # =========================================================================
    # Stream events
    # =========================================================================

    def on_session_start(self, stream_id: str | None = None) -> None:
        """Bind the stream, start the silence timer, greet, and accept turns."""
        session = self._session
        if self._stopped:
            return
        if stream_id:
            session.stream_id = stream_id
        if self._started:
            logger.debug(f"Duplicate start for call {session.call_id}")
            return
        self._started = True

        record_call_started(session.vertical)
        logger.info(
            f"Session started for call {session.call_id} "
            f"(vertical: {session.vertical}, stream: {session.stream_id})"
        )

        self._turns.touch()
        self._greeting_task = asyncio.create_task(
            self._pipeline.greet(), name=f"greeting-{session.call_id}"
        )
        self._worker_task = asyncio.create_task(
            self._run_turns(), name=f"turns-{session.call_id}"
        )

    def on_audio_frame(self, frame: bytes) -> None:
        """Forward one inbound audio frame to transcription."""
        if self._stopped or self._session.closed:
            return

        if self._bridge is None:
            self._bridge = self._services.bridge_factory(self._session.call_id, self.on_transcript)
        if not self._bridge.started:
            self._bridge.start()
        self._bridge.write(frame)

        self._turns.touch()
        self._session.touch()

    def on_transcript(self, event: TranscriptEvent) -> None:
        """Queue a finalized caller utterance; interim results are ignored."""
        if self._stopped or self._session.closed or not event.is_final:
            return
        text = event.text.strip()
        if not text:
            return

        logger.info(f"Caller [{self._session.call_id}]: {preview_text(text)}")
        self._session.touch()
        self._queue.put_nowait(text)

    async def on_session_stop(self) -> None:
        """Tear down all call resources. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        session = self._session
        session.closed = True

        self._turns.cancel()
        if self.busy:
            logger.info(f"Call {session.call_id} closing with a caller turn still pending")

        if self._bridge is not None:
            try:
                await self._bridge.stop()
            except Exception as e:
                logger.error(f"Error stopping transcription for call {session.call_id}: {e}")

        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._greeting_task, self._worker_task, *self._pipeline_tasks)
            if task is not None and task is not current and not task.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._started:
            record_call_ended(session.vertical, session.duration_seconds)
        logger.info(
            f"Session closed for call {session.call_id} "
            f"({len(session.history)} turns, {session.duration_seconds:.1f}s)"
        )

        if self._on_closed is not None:
            self._on_closed(session)

    # =========================================================================
    # Turn worker
    # =========================================================================

    async def _run_turns(self) -> None:
        if self._greeting_task is not None:
            limit = self._services.settings.max_turn_duration_seconds
            done, _ = await asyncio.wait({self._greeting_task}, timeout=limit)
            if not done:
                logger.warning(
                    f"Greeting for call {self._session.call_id} still running after "
                    f"{limit}s, taking caller turns"
                )

        while True:
            text = await self._queue.get()
            released = asyncio.Event()
            turn_id = self._turns.start_turn(released.set)

            task = asyncio.create_task(
                self._pipeline.respond(text, turn_id=turn_id, release=released.set),
                name=f"turn-{self._session.call_id}-{turn_id}",
            )
            self._pipeline_tasks.add(task)
            task.add_done_callback(self._pipeline_done)

            await released.wait()

    def _pipeline_done(self, task: asyncio.Task[Any]) -> None:
        self._pipeline_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Turn failed for call {self._session.call_id}: {error}")

    def _turn_timed_out(self) -> None:
        record_turn_timeout(self._session.vertical)
