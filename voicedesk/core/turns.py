"""Silence and turn-duration timers for one call."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from voicedesk.core.session import CallSession
from voicedesk.logging_config import get_logger

logger: Any = get_logger(__name__)


class TurnController:
    """Owns the two per-call timers.

    - silence timer: re-armed by touch() on every inbound frame; when it fires
      while no response is pending, the session is marked idle and the
      silence hook runs
    - turn timer: armed by start_turn() when a caller turn begins; when it
      fires, awaiting_response is cleared and the turn's release callback runs
      so the next turn can start, even if the response is still in flight

    Timers are loop.call_later handles; nothing here cancels in-flight work.
    """

    def __init__(
        self,
        session: CallSession,
        *,
        silence_timeout: float,
        max_turn_duration: float,
        on_silence: Callable[[], None] | None = None,
        on_turn_timeout: Callable[[], None] | None = None,
    ) -> None:
        self._session = session
        self._silence_timeout = silence_timeout
        self._max_turn_duration = max_turn_duration
        self._on_silence = on_silence
        self._on_turn_timeout = on_turn_timeout

        self._silence_handle: asyncio.TimerHandle | None = None
        self._turn_handle: asyncio.TimerHandle | None = None
        self._turn_release: Callable[[], None] | None = None
        self._turn_id = 0

    @property
    def silence_armed(self) -> bool:
        return self._silence_handle is not None

    @property
    def turn_armed(self) -> bool:
        return self._turn_handle is not None

    @property
    def current_turn(self) -> int | None:
        """Id of the turn the turn timer is guarding."""
        return self._turn_id if self._turn_handle is not None else None

    def touch(self) -> None:
        """Re-arm the silence timer."""
        if self._silence_handle is not None:
            self._silence_handle.cancel()
        loop = asyncio.get_running_loop()
        self._silence_handle = loop.call_later(self._silence_timeout, self._silence_expired)

    def start_turn(self, release: Callable[[], None] | None = None) -> int:
        """Arm the turn timer for a new turn and return the turn's id."""
        self._cancel_turn_handle()
        self._turn_id += 1
        self._turn_release = release
        loop = asyncio.get_running_loop()
        self._turn_handle = loop.call_later(self._max_turn_duration, self._turn_expired)
        return self._turn_id

    def end_turn(self, turn_id: int | None = None) -> bool:
        """Cancel the turn timer.

        With a turn id, only that turn's timer is cancelled; a stale id (its
        timer already fired, or a newer turn started) is a no-op.

        Returns:
            True if the timer was still guarding the given turn
        """
        if turn_id is not None and turn_id != self.current_turn:
            return False
        was_armed = self._turn_handle is not None
        self._cancel_turn_handle()
        self._turn_release = None
        return was_armed

    def cancel(self) -> None:
        """Cancel both timers."""
        if self._silence_handle is not None:
            self._silence_handle.cancel()
            self._silence_handle = None
        self._cancel_turn_handle()
        self._turn_release = None

    def _cancel_turn_handle(self) -> None:
        if self._turn_handle is not None:
            self._turn_handle.cancel()
            self._turn_handle = None

    def _silence_expired(self) -> None:
        self._silence_handle = None
        session = self._session
        if session.closed or session.awaiting_response:
            return

        session.idle = True
        logger.debug(f"Silence timeout for call {session.call_id}")
        if self._on_silence is not None:
            self._on_silence()

    def _turn_expired(self) -> None:
        self._turn_handle = None
        release, self._turn_release = self._turn_release, None
        self._session.awaiting_response = False

        logger.warning(
            f"Turn exceeded {self._max_turn_duration:.0f}s for call {self._session.call_id}, "
            "accepting next turn"
        )
        if self._on_turn_timeout is not None:
            self._on_turn_timeout()
        if release is not None:
            release()
