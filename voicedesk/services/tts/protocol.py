"""TTS (Text-to-Speech) service protocol and data types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from voicedesk.services.profiles import AudioProfile

# Provider inputs are capped at this many characters
MAX_TTS_CHARS = 4096

BrowserEncoding = Literal["linear16", "mulaw", "alaw", "mp3", "opus", "flac", "aac"]

CONTENT_TYPES: dict[str, str] = {
    "mp3": "audio/mpeg",
    "linear16": "audio/l16",
    "mulaw": "audio/basic",
    "alaw": "audio/x-alaw-basic",
    "opus": "audio/ogg",
    "flac": "audio/flac",
    "aac": "audio/aac",
}


@dataclass(frozen=True, slots=True)
class BrowserSynthesisOptions:
    """Audio options for the browser test page (Deepgram Aura only)."""

    model: str | None = None
    encoding: BrowserEncoding = "mp3"
    sample_rate: int | None = None
    bit_rate: int | None = None

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self.encoding, "application/octet-stream")


class SpeechProvider(Protocol):
    """One TTS backend in the fallback chain."""

    name: str

    @property
    def configured(self) -> bool:
        """True when credentials for this provider are present."""
        ...

    async def synthesize(self, text: str, output: AudioProfile) -> bytes:
        """Synthesize text as raw audio in the output profile's encoding."""
        ...

    async def synthesize_browser(
        self, text: str, options: BrowserSynthesisOptions
    ) -> tuple[bytes, str]:
        """Synthesize text for browser playback. Returns (audio, content type)."""
        ...


class Synthesizer(Protocol):
    """What the response pipeline needs from speech synthesis."""

    async def synthesize(self, text: str) -> bytes:
        """Synthesize text for the call. Empty bytes means not configured."""
        ...
