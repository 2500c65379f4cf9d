"""Deepgram Aura TTS over the REST speak endpoint."""

from __future__ import annotations

from typing import Any

import httpx

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.tts.exceptions import TTSConnectionError, TTSSynthesisError
from voicedesk.services.tts.protocol import BrowserSynthesisOptions

logger: Any = get_logger(__name__)

DEEPGRAM_SPEAK_URL = "https://api.deepgram.com/v1/speak"
REQUEST_TIMEOUT_SECONDS = 15.0


class DeepgramTTSProvider:
    """Deepgram Aura; returns audio directly in the requested encoding and rate."""

    name = "deepgram"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client

    @property
    def configured(self) -> bool:
        return self._settings.deepgram_api_key is not None

    async def synthesize(self, text: str, output: AudioProfile) -> bytes:
        # Raw samples, no WAV header, so the bytes can go straight onto the stream
        return await self._speak(
            text,
            {
                "model": self._settings.deepgram_tts_model,
                "encoding": output.encoding,
                "sample_rate": output.sample_rate,
                "container": "none",
            },
        )

    async def synthesize_browser(
        self, text: str, options: BrowserSynthesisOptions
    ) -> tuple[bytes, str]:
        params: dict[str, Any] = {
            "model": options.model or self._settings.deepgram_tts_model,
            "encoding": options.encoding,
        }
        if options.sample_rate is not None:
            params["sample_rate"] = options.sample_rate
        if options.bit_rate is not None:
            params["bit_rate"] = options.bit_rate
        return await self._speak(text, params), options.content_type

    async def _speak(self, text: str, params: dict[str, Any]) -> bytes:
        api_key = self._settings.deepgram_api_key
        if api_key is None:
            raise TTSConnectionError("Deepgram API key is not configured")

        headers = {
            "Authorization": f"Token {api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    DEEPGRAM_SPEAK_URL, params=params, headers=headers, json={"text": text}
                )
            else:
                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
                    response = await client.post(
                        DEEPGRAM_SPEAK_URL, params=params, headers=headers, json={"text": text}
                    )
        except httpx.HTTPError as e:
            raise TTSConnectionError(f"Deepgram TTS request failed: {e}") from e

        if response.status_code != 200:
            raise TTSSynthesisError(
                f"Deepgram TTS failed: {response.status_code} {response.text[:200]}"
            )
        return response.content
