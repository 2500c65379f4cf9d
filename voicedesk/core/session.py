"""Call session state."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from voicedesk.services.llm.protocol import Role, Turn
from voicedesk.verticals.models import VerticalConfig


@dataclass
class CallSession:
    """State for a single phone call.

    Created when the stream starts, discarded on stop or disconnect.
    Conversation history is append-only and lives only for the call.
    """

    call_id: str
    vertical: str
    config: VerticalConfig
    stream_id: str | None = None

    awaiting_response: bool = False
    idle: bool = False
    closed: bool = False
    started_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)

    _history: list[Turn] = field(default_factory=list, init=False, repr=False)

    @property
    def history(self) -> tuple[Turn, ...]:
        """Conversation so far, oldest first."""
        return tuple(self._history)

    def add_turn(self, role: Role, text: str) -> Turn:
        turn = Turn(role=role, text=text)
        self._history.append(turn)
        return turn

    def touch(self) -> None:
        """Record caller activity."""
        self.last_activity = time.monotonic()
        self.idle = False

    @property
    def duration_seconds(self) -> float:
        return time.monotonic() - self.started_at
