"""Text-to-Speech services (Deepgram Aura, ElevenLabs, OpenAI)."""

from voicedesk.services.tts.deepgram import DeepgramTTSProvider
from voicedesk.services.tts.elevenlabs import ElevenLabsTTSProvider
from voicedesk.services.tts.exceptions import (
    TTSConnectionError,
    TTSResamplingError,
    TTSServiceError,
    TTSSynthesisError,
)
from voicedesk.services.tts.openai_tts import OpenAITTSProvider
from voicedesk.services.tts.protocol import (
    MAX_TTS_CHARS,
    BrowserSynthesisOptions,
    SpeechProvider,
    Synthesizer,
)
from voicedesk.services.tts.resampler import AudioResampler, encode_pcm16
from voicedesk.services.tts.synthesizer import SpeechSynthesizer

__all__ = [
    # Protocol and types
    "SpeechProvider",
    "Synthesizer",
    "BrowserSynthesisOptions",
    "MAX_TTS_CHARS",
    # Implementations
    "SpeechSynthesizer",
    "DeepgramTTSProvider",
    "ElevenLabsTTSProvider",
    "OpenAITTSProvider",
    # Utilities
    "AudioResampler",
    "encode_pcm16",
    # Exceptions
    "TTSServiceError",
    "TTSSynthesisError",
    "TTSConnectionError",
    "TTSResamplingError",
]
