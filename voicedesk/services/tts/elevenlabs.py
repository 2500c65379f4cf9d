"""ElevenLabs TTS service implementation for high-naturalness speech."""

from __future__ import annotations

import asyncio
import io
from typing import Any

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.tts.exceptions import TTSConnectionError, TTSSynthesisError
from voicedesk.services.tts.protocol import BrowserSynthesisOptions

logger: Any = get_logger(__name__)

BROWSER_OUTPUT_FORMAT = "mp3_44100_128"


def output_format_for(profile: AudioProfile) -> str:
    """ElevenLabs output_format matching the call profile (ulaw_8000, pcm_16000)."""
    if profile.encoding == "mulaw":
        return f"ulaw_{profile.sample_rate}"
    return f"pcm_{profile.sample_rate}"


class ElevenLabsTTSProvider:
    """ElevenLabs; asks for the call's encoding directly, no local conversion."""

    name = "elevenlabs"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: Any = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or self._settings.elevenlabs_api_key is not None

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._settings.elevenlabs_api_key:
                raise TTSConnectionError("ElevenLabs API key is not configured")
            from elevenlabs import ElevenLabs

            self._client = ElevenLabs(
                api_key=self._settings.elevenlabs_api_key.get_secret_value()
            )
        return self._client

    async def synthesize(self, text: str, output: AudioProfile) -> bytes:
        return await self._convert(text, output_format_for(output))

    async def synthesize_browser(
        self, text: str, options: BrowserSynthesisOptions
    ) -> tuple[bytes, str]:
        return await self._convert(text, BROWSER_OUTPUT_FORMAT), "audio/mpeg"

    async def _convert(self, text: str, output_format: str) -> bytes:
        try:
            audio = await asyncio.to_thread(self._convert_sync, text, output_format)
        except TTSConnectionError:
            raise
        except Exception as e:
            logger.error(f"ElevenLabs synthesis error: {e}")
            raise TTSConnectionError(f"ElevenLabs connection failed: {e}") from e

        if not audio:
            raise TTSSynthesisError("No audio received from ElevenLabs")
        return audio

    def _convert_sync(self, text: str, output_format: str) -> bytes:
        client = self._get_client()

        audio_chunks = client.text_to_speech.convert(
            text=text,
            voice_id=self._settings.elevenlabs_voice_id,
            model_id=self._settings.elevenlabs_model_id,
            output_format=output_format,
        )

        buffer = io.BytesIO()
        for chunk in audio_chunks:
            buffer.write(chunk)
        return buffer.getvalue()
