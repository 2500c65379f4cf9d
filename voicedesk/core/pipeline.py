"""Response pipeline: caller text → reasoning → synthesis → audio out.

One respond() call handles one caller turn. Reasoning and synthesis errors
never escape it; they become the spoken fallback phrase.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from voicedesk.core.session import CallSession
from voicedesk.core.turns import TurnController
from voicedesk.logging_config import get_logger, preview_text
from voicedesk.observability.metrics import TurnOutcome, record_turn
from voicedesk.services.llm.protocol import ReasoningService, Role, RunOptions
from voicedesk.services.tts.protocol import Synthesizer

logger: Any = get_logger(__name__)


class AudioSender(Protocol):
    """Protocol for sending audio back to the caller."""

    async def send_audio(self, audio: bytes) -> None:
        """Send encoded audio to the caller."""
        ...


class ResponsePipeline:
    """Produces and plays the agent's reply for each caller turn."""

    def __init__(
        self,
        session: CallSession,
        reasoning: ReasoningService,
        synthesizer: Synthesizer,
        sender: AudioSender,
        *,
        fallback_phrase: str,
        turns: TurnController | None = None,
        run_options: RunOptions | None = None,
    ) -> None:
        self._session = session
        self._reasoning = reasoning
        self._synthesizer = synthesizer
        self._sender = sender
        self._fallback_phrase = fallback_phrase
        self._turns = turns
        self._run_options = run_options

    @property
    def fallback_phrase(self) -> str:
        return self._fallback_phrase

    async def respond(
        self,
        text: str,
        *,
        turn_id: int | None = None,
        release: Callable[[], None] | None = None,
    ) -> TurnOutcome:
        """Handle one finalized caller utterance.

        Args:
            text: Caller transcript (already trimmed, non-empty)
            turn_id: Turn timer guarding this turn, from TurnController.start_turn
            release: Called when the turn is over so the next one can start

        Returns:
            replied, fallback, or silent (nothing was played)
        """
        session = self._session
        session.add_turn(Role.CALLER, text)
        session.awaiting_response = True

        outcome: TurnOutcome = "silent"
        reasoning_seconds: float | None = None
        synthesis_seconds: float | None = None

        try:
            start_time = time.perf_counter()
            try:
                reply = await self._reasoning.run(
                    session.config, session.history, self._run_options
                )
            except Exception as e:
                logger.error(f"Reasoning failed for call {session.call_id}: {e}")
                session.add_turn(Role.AGENT, self._fallback_phrase)
                outcome = "fallback" if await self.speak_fallback() else "silent"
                return outcome

            reasoning_seconds = time.perf_counter() - start_time
            session.add_turn(Role.AGENT, reply)
            logger.info(f"Agent [{session.call_id}]: {preview_text(reply)}")

            try:
                start_time = time.perf_counter()
                audio = await self._synthesizer.synthesize(reply)
                synthesis_seconds = time.perf_counter() - start_time
                if audio:
                    await self._sender.send_audio(audio)
                    outcome = "replied"
            except Exception as e:
                logger.error(f"Synthesis failed for call {session.call_id}: {e}")
                outcome = "fallback" if await self.speak_fallback() else "silent"

            return outcome

        finally:
            # A stale turn (timer already fired) must not clear a newer turn's flag
            if self._turns is None or turn_id is None or self._turns.end_turn(turn_id):
                session.awaiting_response = False
            if release is not None:
                release()
            record_turn(
                session.vertical,
                outcome,
                reasoning_seconds=reasoning_seconds,
                synthesis_seconds=synthesis_seconds,
            )

    async def greet(self) -> bool:
        """Speak the vertical's greeting. Not added to history."""
        session = self._session
        session.awaiting_response = True
        try:
            return await self.speak(session.config.greeting)
        except Exception as e:
            logger.error(f"Greeting failed for call {session.call_id}: {e}")
            return False
        finally:
            session.awaiting_response = False

    async def speak_fallback(self) -> bool:
        """Speak the fallback phrase once. A failure here is logged, not raised."""
        try:
            return await self.speak(self._fallback_phrase)
        except Exception as e:
            logger.error(f"Fallback failed for call {self._session.call_id}: {e}")
            return False

    async def speak(self, text: str) -> bool:
        """Synthesize text and send it. Returns False when there was no audio."""
        audio = await self._synthesizer.synthesize(text)
        if not audio:
            return False
        await self._sender.send_audio(audio)
        return True
