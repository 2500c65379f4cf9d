"""OpenAI TTS, the last provider in the chain.

OpenAI returns 24kHz 16-bit PCM, so call audio is resampled and re-encoded
locally.
"""

from __future__ import annotations

from typing import Any

import openai
from openai import AsyncOpenAI

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.tts.exceptions import TTSConnectionError, TTSSynthesisError
from voicedesk.services.tts.protocol import BrowserSynthesisOptions
from voicedesk.services.tts.resampler import AudioResampler, encode_pcm16

logger: Any = get_logger(__name__)

OPENAI_PCM_SAMPLE_RATE = 24000


class OpenAITTSProvider:
    """OpenAI speech endpoint."""

    name = "openai"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._resamplers: dict[int, AudioResampler] = {}

    @property
    def configured(self) -> bool:
        return self._client is not None or self._settings.openai_api_key is not None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of AsyncOpenAI client."""
        if self._client is None:
            api_key = self._settings.openai_api_key
            if api_key is None:
                raise TTSConnectionError("OpenAI API key is not configured")
            self._client = AsyncOpenAI(api_key=api_key.get_secret_value(), timeout=30.0)
        return self._client

    def _get_resampler(self, target_rate: int) -> AudioResampler:
        if target_rate not in self._resamplers:
            self._resamplers[target_rate] = AudioResampler(OPENAI_PCM_SAMPLE_RATE, target_rate)
        return self._resamplers[target_rate]

    async def synthesize(self, text: str, output: AudioProfile) -> bytes:
        pcm = await self._speech(text, "pcm")
        pcm = await self._get_resampler(output.sample_rate).resample(pcm)
        return encode_pcm16(pcm, output)

    async def synthesize_browser(
        self, text: str, options: BrowserSynthesisOptions
    ) -> tuple[bytes, str]:
        return await self._speech(text, "mp3"), "audio/mpeg"

    async def _speech(self, text: str, response_format: str) -> bytes:
        try:
            response = await self.client.audio.speech.create(
                model=self._settings.openai_tts_model,
                voice=self._settings.openai_tts_voice,
                input=text,
                response_format=response_format,
            )
        except openai.APIError as e:
            logger.error(f"OpenAI TTS error: {e}")
            raise TTSConnectionError(f"OpenAI TTS request failed: {e}") from e

        audio = response.content
        if not audio:
            raise TTSSynthesisError("No audio received from OpenAI")
        return audio
