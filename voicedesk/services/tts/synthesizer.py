"""Speech synthesis with provider fallback.

Providers are tried in order: Deepgram Aura, ElevenLabs, OpenAI. Only
providers with credentials take part. A failing provider is logged and the
next one is tried.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger, preview_text
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.tts.deepgram import DeepgramTTSProvider
from voicedesk.services.tts.elevenlabs import ElevenLabsTTSProvider
from voicedesk.services.tts.exceptions import TTSSynthesisError
from voicedesk.services.tts.openai_tts import OpenAITTSProvider
from voicedesk.services.tts.protocol import (
    MAX_TTS_CHARS,
    BrowserSynthesisOptions,
    SpeechProvider,
)

logger: Any = get_logger(__name__)


def default_providers(settings: Settings) -> list[SpeechProvider]:
    return [
        DeepgramTTSProvider(settings),
        ElevenLabsTTSProvider(settings),
        OpenAITTSProvider(settings),
    ]


class SpeechSynthesizer:
    """Synthesizes agent replies for one output profile."""

    def __init__(
        self,
        output: AudioProfile,
        settings: Settings | None = None,
        *,
        providers: Sequence[SpeechProvider] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._output = output
        self._providers = list(
            providers if providers is not None else default_providers(self._settings)
        )

    @property
    def output(self) -> AudioProfile:
        return self._output

    @property
    def providers(self) -> list[SpeechProvider]:
        """Configured providers, in fallback order."""
        return [p for p in self._providers if p.configured]

    @property
    def configured(self) -> bool:
        return bool(self.providers)

    async def synthesize(self, text: str) -> bytes:
        """Synthesize text in the output profile's encoding.

        Returns:
            Audio bytes; empty when no provider is configured or text is blank

        Raises:
            TTSSynthesisError: When every configured provider failed
        """
        text = text.strip()[:MAX_TTS_CHARS]
        providers = self.providers
        if not text or not providers:
            if not providers:
                logger.debug("No TTS provider configured, skipping synthesis")
            return b""

        last_error: Exception | None = None
        for provider in providers:
            start_time = time.perf_counter()
            try:
                audio = await provider.synthesize(text, self._output)
            except Exception as e:
                logger.warning(f"TTS provider {provider.name} failed, trying next: {e}")
                last_error = e
                continue

            if audio:
                logger.debug(
                    f"{provider.name} synthesized {len(audio)} bytes in "
                    f"{(time.perf_counter() - start_time) * 1000:.0f}ms: {preview_text(text)}"
                )
                return audio
            logger.warning(f"TTS provider {provider.name} returned no audio")

        raise TTSSynthesisError(f"All TTS providers failed: {last_error}") from last_error

    async def synthesize_for_browser(
        self,
        text: str,
        options: BrowserSynthesisOptions | None = None,
    ) -> tuple[bytes, str]:
        """Synthesize playable audio for the browser test page.

        Returns:
            (audio bytes, content type); (b"", "") when nothing is configured

        Raises:
            TTSSynthesisError: When every configured provider failed
        """
        options = options or BrowserSynthesisOptions()
        text = text.strip()[:MAX_TTS_CHARS]
        providers = self.providers
        if not text or not providers:
            return b"", ""

        last_error: Exception | None = None
        for provider in providers:
            try:
                audio, content_type = await provider.synthesize_browser(text, options)
            except Exception as e:
                logger.warning(f"TTS provider {provider.name} failed, trying next: {e}")
                last_error = e
                continue
            if audio:
                return audio, content_type

        raise TTSSynthesisError(f"All TTS providers failed: {last_error}") from last_error
