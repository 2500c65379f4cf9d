"""STT (Speech-to-Text) bridge protocol and data types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class TranscriptEvent:
    """A transcript result for one utterance.

    Interim results may change; a final result closes the utterance.
    """

    text: str
    is_final: bool


TranscriptCallback = Callable[[TranscriptEvent], None]


class TranscriptionBridge(Protocol):
    """One call's connection to a streaming STT provider."""

    @property
    def started(self) -> bool:
        """True while a connection is open or being opened."""
        ...

    def start(self) -> None:
        """Open the provider connection. No-op if already started."""
        ...

    def write(self, frame: bytes) -> None:
        """Forward one audio frame. Dropped silently after stop()."""
        ...

    async def stop(self) -> None:
        """Signal end-of-stream and release the connection. Idempotent."""
        ...
