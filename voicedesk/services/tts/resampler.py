"""Audio resampling using soxr, and encoding for the call profile."""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import soxr

from voicedesk.logging_config import get_logger
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.telephony.plivo import pcm16_to_mulaw
from voicedesk.services.tts.exceptions import TTSResamplingError

logger: Any = get_logger(__name__)


class AudioResampler:
    """High-quality audio resampler using soxr.

    Converts provider output rates to the call's rate, e.g.
    OpenAI TTS 24000Hz → 8000Hz (phone) or 16000Hz (browser).
    """

    def __init__(
        self,
        source_rate: int,
        target_rate: int,
        quality: str = "HQ",  # VHQ, HQ, MQ, LQ, QQ
    ) -> None:
        self._source_rate = source_rate
        self._target_rate = target_rate
        self._quality = quality

    @property
    def target_rate(self) -> int:
        return self._target_rate

    @property
    def needs_resampling(self) -> bool:
        """Check if resampling is actually needed."""
        return self._source_rate != self._target_rate

    async def resample(self, audio_data: bytes) -> bytes:
        """Resample 16-bit mono PCM asynchronously.

        Raises:
            TTSResamplingError: If soxr fails
        """
        if not self.needs_resampling or not audio_data:
            return audio_data

        try:
            # CPU-bound
            return await asyncio.to_thread(self._resample_sync, audio_data)
        except Exception as e:
            logger.error(f"Resampling failed: {e}")
            raise TTSResamplingError(f"Failed to resample audio: {e}") from e

    def _resample_sync(self, audio_data: bytes) -> bytes:
        # Odd trailing byte is not a full sample
        usable = len(audio_data) - (len(audio_data) % 2)
        audio_array = np.frombuffer(audio_data[:usable], dtype=np.int16)
        audio_float = audio_array.astype(np.float64) / 32768.0

        resampled = soxr.resample(
            audio_float,
            self._source_rate,
            self._target_rate,
            quality=self._quality,
        )

        resampled_int16 = (resampled * 32767).clip(-32768, 32767).astype(np.int16)
        return bytes(resampled_int16.tobytes())


def encode_pcm16(pcm: bytes, profile: AudioProfile) -> bytes:
    """Encode 16-bit PCM (already at the profile's rate) for the wire."""
    if profile.encoding == "mulaw":
        return pcm16_to_mulaw(pcm)
    return pcm
