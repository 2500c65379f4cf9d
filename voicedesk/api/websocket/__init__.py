"""WebSocket handlers for real-time audio streaming.

- audio_stream_endpoint: Plivo call stream
- browser_voice_endpoint: browser microphone transcription test
"""

from voicedesk.api.websocket.audio_stream import audio_stream_endpoint
from voicedesk.api.websocket.browser_voice import browser_voice_endpoint
from voicedesk.api.websocket.sender import PlivoAudioSender

__all__ = [
    "audio_stream_endpoint",
    "browser_voice_endpoint",
    "PlivoAudioSender",
]
