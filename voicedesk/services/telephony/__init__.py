"""Telephony services (Plivo).

- PlivoService: XML generation, outbound calls
- PCM to μ-law conversion
"""

from voicedesk.services.telephony.plivo import (
    PlivoCallInfo,
    PlivoConfigurationError,
    PlivoService,
    build_stream_url,
    pcm16_to_mulaw,
)

__all__ = [
    "PlivoService",
    "PlivoCallInfo",
    "PlivoConfigurationError",
    "build_stream_url",
    "pcm16_to_mulaw",
]
