"""Speech-to-Text services."""

from voicedesk.services.stt.deepgram import DeepgramBridge
from voicedesk.services.stt.exceptions import STTConnectionError, STTServiceError
from voicedesk.services.stt.protocol import (
    TranscriptCallback,
    TranscriptEvent,
    TranscriptionBridge,
)

__all__ = [
    "DeepgramBridge",
    "STTConnectionError",
    "STTServiceError",
    "TranscriptCallback",
    "TranscriptEvent",
    "TranscriptionBridge",
]
