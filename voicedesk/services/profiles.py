"""Audio profiles shared by the stream, STT and TTS layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class AudioProfile:
    """Encoding of one call's audio, fixed when the call is set up.

    Narrowband is the telephony stream (8kHz μ-law). Wideband is the browser
    test page (16kHz linear PCM).
    """

    name: Literal["narrowband", "wideband"]
    encoding: Literal["mulaw", "linear16"]
    sample_rate: int
    channels: int = 1
    finalization_silence_ms: int = 1000  # Silence before STT marks an utterance final

    @property
    def content_type(self) -> str:
        """Plivo <Stream> contentType for this profile."""
        if self.encoding == "mulaw":
            return f"audio/x-mulaw;rate={self.sample_rate}"
        return f"audio/x-l16;rate={self.sample_rate}"


NARROWBAND = AudioProfile(
    name="narrowband",
    encoding="mulaw",
    sample_rate=8000,
    finalization_silence_ms=1000,
)

# Long pause before "final" so a tester can finish a full sentence
WIDEBAND = AudioProfile(
    name="wideband",
    encoding="linear16",
    sample_rate=16000,
    finalization_silence_ms=4000,
)

PROFILES: dict[str, AudioProfile] = {
    NARROWBAND.name: NARROWBAND,
    WIDEBAND.name: WIDEBAND,
}


def get_profile(name: str) -> AudioProfile:
    """Look up a profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown audio profile: {name!r}") from None
