"""Registry of active call sessions, keyed by call id."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from voicedesk.core.orchestrator import SessionOrchestrator, SessionServices
from voicedesk.core.pipeline import AudioSender
from voicedesk.core.session import CallSession
from voicedesk.logging_config import get_logger
from voicedesk.verticals.models import UnknownVerticalError, VerticalConfig
from voicedesk.verticals.registry import VerticalRegistry

logger: Any = get_logger(__name__)


class CallCapacityError(Exception):
    """Raised when system is at maximum call capacity."""

    pass


class SessionRegistry:
    """Active sessions for one process.

    Sessions are added when a stream starts and removed by their own
    teardown; the hangup webhook and shutdown close them through here.
    """

    def __init__(
        self,
        verticals: VerticalRegistry,
        services: SessionServices,
        *,
        max_sessions: int,
    ) -> None:
        self._verticals = verticals
        self._services = services
        self._max_sessions = max_sessions
        self._sessions: dict[str, SessionOrchestrator] = {}

    @property
    def verticals(self) -> VerticalRegistry:
        return self._verticals

    @property
    def active_count(self) -> int:
        """Number of active sessions."""
        return len(self._sessions)

    def has_capacity(self) -> bool:
        return len(self._sessions) < self._max_sessions

    def resolve_vertical(self, vertical_id: str | None) -> tuple[str, VerticalConfig]:
        """Vertical id and config to use; unknown ids fall back to the default."""
        if vertical_id:
            try:
                config = self._verticals.get(vertical_id)
                return vertical_id.strip().lower(), config
            except UnknownVerticalError:
                logger.warning(
                    f"Unknown vertical {vertical_id!r}, using {self._verticals.default_id!r}"
                )
        return self._verticals.default_id, self._verticals.default

    def open(
        self,
        call_id: str,
        *,
        vertical_id: str | None,
        sender_factory: Callable[[CallSession], AudioSender],
    ) -> SessionOrchestrator:
        """Create and register the orchestrator for a call.

        Returns the existing orchestrator if the call is already registered.

        Raises:
            CallCapacityError: If system is at maximum capacity.
        """
        existing = self._sessions.get(call_id)
        if existing is not None:
            return existing

        if not self.has_capacity():
            logger.warning(
                f"Max concurrent calls reached ({self._max_sessions}), rejecting call {call_id}"
            )
            raise CallCapacityError(f"System at capacity ({self._max_sessions} concurrent calls)")

        vertical, config = self.resolve_vertical(vertical_id)
        session = CallSession(call_id=call_id, vertical=vertical, config=config)
        orchestrator = SessionOrchestrator(
            session,
            self._services,
            sender_factory(session),
            on_closed=self._release,
        )
        self._sessions[call_id] = orchestrator

        logger.info(
            f"Created session for call {call_id} (vertical: {vertical}, "
            f"active: {len(self._sessions)}/{self._max_sessions})"
        )
        return orchestrator

    def get(self, call_id: str) -> SessionOrchestrator | None:
        return self._sessions.get(call_id)

    async def close(self, call_id: str) -> bool:
        """Tear down a call's session if it is active.

        Returns:
            True if a session was found
        """
        orchestrator = self._sessions.get(call_id)
        if orchestrator is None:
            return False
        await orchestrator.on_session_stop()
        return True

    async def close_all(self) -> None:
        """Close all sessions (for shutdown)."""
        for call_id, orchestrator in list(self._sessions.items()):
            try:
                await orchestrator.on_session_stop()
            except Exception as e:
                logger.error(f"Error closing session {call_id}: {e}")
        self._sessions.clear()

    def _release(self, session: CallSession) -> None:
        orchestrator = self._sessions.get(session.call_id)
        if orchestrator is not None and orchestrator.session is session:
            del self._sessions[session.call_id]
