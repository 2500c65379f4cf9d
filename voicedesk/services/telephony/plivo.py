"""Plivo telephony service.

Handles:
- XML responses that open the bidirectional audio stream, speak, or hang up
- Outbound calls via the Plivo SDK
- μ-law encoding of synthesized PCM
"""

from __future__ import annotations

import asyncio
import audioop
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import urlencode
from xml.etree.ElementTree import Element, SubElement, tostring

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger, mask_phone
from voicedesk.services.profiles import AudioProfile

if TYPE_CHECKING:
    import plivo

logger: Any = get_logger(__name__)

PCM16_SAMPLE_WIDTH = 2  # 16-bit PCM
STREAM_TIMEOUT_SECONDS = 3600

SPEAK_VOICE = "WOMAN"
SPEAK_LANGUAGE = "en-US"


class PlivoConfigurationError(RuntimeError):
    """Raised when Plivo credentials or caller ID are missing."""


@dataclass(frozen=True, slots=True)
class PlivoCallInfo:
    """Information about a Plivo call."""

    call_uuid: str
    from_number: str
    to_number: str
    direction: Literal["inbound", "outbound"]
    status: str = "initiated"
    answered_at: datetime | None = None

    @classmethod
    def from_webhook(cls, form_data: dict[str, str]) -> PlivoCallInfo:
        """Create from Plivo webhook form data."""
        direction = "outbound" if form_data.get("Direction") == "outbound" else "inbound"
        return cls(
            call_uuid=form_data.get("CallUUID", ""),
            from_number=form_data.get("From", ""),
            to_number=form_data.get("To", ""),
            direction=direction,
            status=form_data.get("CallStatus", "initiated"),
            answered_at=datetime.now(UTC) if form_data.get("CallStatus") == "in-progress" else None,
        )


def _render(response: Element) -> str:
    xml_str = tostring(response, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>{xml_str}'


def build_stream_url(base_url: str, call_id: str, vertical: str | None = None) -> str:
    """WebSocket URL of the audio stream endpoint for one call.

    http(s) base URLs are turned into ws(s).
    """
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    url = f"{base}/ws/audio/{call_id}"
    if vertical:
        url += "?" + urlencode({"vertical": vertical})
    return url


class PlivoService:
    """Service for Plivo telephony operations."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._client: plivo.RestClient | None = None

    @property
    def configured(self) -> bool:
        s = self._settings
        return bool(s.plivo_auth_id and s.plivo_auth_token)

    @property
    def client(self) -> plivo.RestClient:
        """Lazy-initialize Plivo REST client."""
        if self._client is None:
            if not self.configured:
                raise PlivoConfigurationError("PLIVO_AUTH_ID and PLIVO_AUTH_TOKEN are required")
            import plivo

            assert self._settings.plivo_auth_token is not None
            self._client = plivo.RestClient(
                auth_id=self._settings.plivo_auth_id,
                auth_token=self._settings.plivo_auth_token.get_secret_value(),
            )
        return self._client

    def generate_stream_xml(
        self,
        websocket_url: str,
        profile: AudioProfile,
        *,
        bidirectional: bool = True,
        audio_track: str = "inbound",
        stream_timeout: int = STREAM_TIMEOUT_SECONDS,
    ) -> str:
        """Generate Plivo XML that opens the call's audio stream.

        Args:
            websocket_url: WebSocket URL for audio stream
            profile: Audio profile of the stream
            bidirectional: Enable bidirectional audio
            audio_track: Which audio track to stream (inbound/outbound/both)
            stream_timeout: Stream timeout in seconds
        """
        response = Element("Response")

        stream = SubElement(response, "Stream")
        stream.set("bidirectional", str(bidirectional).lower())
        stream.set("keepCallAlive", "true")
        stream.set("audioTrack", audio_track)
        stream.set("contentType", profile.content_type)
        stream.set("streamTimeout", str(stream_timeout))
        stream.text = websocket_url

        return _render(response)

    def generate_hangup_xml(self, reason: str = "") -> str:
        """Generate Plivo XML to hang up, optionally speaking a reason first."""
        response = Element("Response")

        if reason:
            speak = SubElement(response, "Speak")
            speak.set("voice", SPEAK_VOICE)
            speak.set("language", SPEAK_LANGUAGE)
            speak.text = reason

        SubElement(response, "Hangup")

        return _render(response)

    async def make_call(
        self,
        to_number: str,
        answer_url: str,
        *,
        from_number: str | None = None,
        hangup_url: str | None = None,
        fallback_url: str | None = None,
    ) -> PlivoCallInfo:
        """Initiate an outbound call.

        Args:
            to_number: Number to call
            answer_url: Webhook URL when call is answered
            from_number: Caller ID (defaults to PLIVO_PHONE_NUMBER)
            hangup_url: Optional webhook for hangup events
            fallback_url: Optional fallback URL on error

        Raises:
            PlivoConfigurationError: If credentials or caller ID are missing
        """
        from_number = from_number or self._settings.plivo_phone_number
        if not from_number:
            raise PlivoConfigurationError("PLIVO_PHONE_NUMBER is required for outbound calls")

        params: dict[str, Any] = {
            "from_": from_number,
            "to_": to_number,
            "answer_url": answer_url,
            "answer_method": "POST",
        }
        if hangup_url:
            params["hangup_url"] = hangup_url
            params["hangup_method"] = "POST"
        if fallback_url:
            params["fallback_url"] = fallback_url
            params["fallback_method"] = "POST"

        client = self.client
        # Sync SDK call
        response = await asyncio.to_thread(lambda: client.calls.create(**params))

        request_uuid = response.request_uuid
        if isinstance(request_uuid, list):
            request_uuid = request_uuid[0] if request_uuid else ""

        logger.info(f"Outbound call {request_uuid} placed to {mask_phone(to_number)}")
        return PlivoCallInfo(
            call_uuid=str(request_uuid),
            from_number=from_number,
            to_number=to_number,
            direction="outbound",
            status="initiated",
        )

    async def health_check(self) -> bool:
        """Check Plivo API connectivity."""
        if not self.configured:
            return False
        try:
            client = self.client
            await asyncio.to_thread(client.account.get)
            return True
        except Exception as e:
            logger.warning(f"Plivo health check failed: {e}")
            return False


# =============================================================================
# Audio Conversion Utilities
# =============================================================================


def pcm16_to_mulaw(pcm_bytes: bytes) -> bytes:
    """Convert 16-bit signed PCM to μ-law encoding.

    Args:
        pcm_bytes: 16-bit signed PCM bytes (little-endian)

    Returns:
        μ-law encoded audio bytes
    """
    return audioop.lin2ulaw(pcm_bytes, PCM16_SAMPLE_WIDTH)
