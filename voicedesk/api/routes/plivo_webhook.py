"""Plivo webhook handlers for call lifecycle management.

Handles:
- Answer webhooks (inbound and outbound): return XML that opens the audio stream
- Hangup webhook: tears down the call's session
- Fallback webhook: error handling
- Outbound call placement
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from voicedesk.api.deps import (
    get_app_settings,
    get_plivo_service,
    get_session_registry,
    get_stream_profile,
)
from voicedesk.config import Settings
from voicedesk.core.registry import SessionRegistry
from voicedesk.logging_config import get_logger, mask_phone
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.telephony.plivo import (
    PlivoCallInfo,
    PlivoConfigurationError,
    PlivoService,
    build_stream_url,
)

router = APIRouter(prefix="/plivo", tags=["Plivo"])
logger: Any = get_logger(__name__)

UNAVAILABLE_MESSAGE = "We are unable to take your call right now. Please try again later."
BUSY_MESSAGE = "All of our lines are busy right now. Please call again in a few minutes."


class OutboundCallRequest(BaseModel):
    to: str = Field(min_length=1)
    vertical: str | None = None


class OutboundCallResponse(BaseModel):
    call_uuid: str
    status: str
    vertical: str


def _xml(content: str) -> Response:
    return Response(content=content, media_type="application/xml")


def public_base_url(request: Request, settings: Settings) -> str:
    """Externally reachable base URL: PUBLIC_BASE_URL or forwarded headers."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    # Use forwarded headers if behind proxy
    host = request.headers.get("x-forwarded-host") or request.headers.get("host", "localhost:8000")
    proto = request.headers.get("x-forwarded-proto", request.url.scheme)
    return f"{proto}://{host}"


async def _stream_response(
    request: Request,
    plivo: PlivoService,
    settings: Settings,
    sessions: SessionRegistry,
    profile: AudioProfile,
) -> Response:
    form_data = await request.form()
    form_dict = {k: str(v) for k, v in form_data.items()}
    call_info = PlivoCallInfo.from_webhook(form_dict)

    logger.info(
        f"Call answered: {call_info.call_uuid} ({call_info.direction}, "
        f"from {mask_phone(call_info.from_number)})"
    )

    vertical = request.query_params.get("vertical") or form_dict.get("vertical")
    if vertical and vertical not in sessions.verticals:
        logger.error(f"Call {call_info.call_uuid} rejected: unknown vertical {vertical!r}")
        return _xml(plivo.generate_hangup_xml(reason=UNAVAILABLE_MESSAGE))

    if not sessions.has_capacity():
        logger.warning(f"Call {call_info.call_uuid} rejected: system at capacity")
        return _xml(plivo.generate_hangup_xml(reason=BUSY_MESSAGE))

    websocket_url = build_stream_url(
        public_base_url(request, settings),
        call_info.call_uuid,
        vertical.strip().lower() if vertical else None,
    )

    logger.debug(f"Returning stream XML for {call_info.call_uuid}")
    return _xml(plivo.generate_stream_xml(websocket_url, profile, bidirectional=True))


@router.post("/webhook/answer")
async def plivo_answer_webhook(
    request: Request,
    plivo: PlivoService = Depends(get_plivo_service),
    settings: Settings = Depends(get_app_settings),
    sessions: SessionRegistry = Depends(get_session_registry),
    profile: AudioProfile = Depends(get_stream_profile),
) -> Response:
    """Handle incoming call answer event from Plivo.

    Returns XML that initiates bidirectional audio streaming.

    Expected form data:
    - CallUUID: Unique call identifier
    - From: Caller phone number
    - To: Called phone number
    - Direction: inbound/outbound
    - CallStatus: current call status
    """
    return await _stream_response(request, plivo, settings, sessions, profile)


@router.post("/webhook/outbound")
async def plivo_outbound_webhook(
    request: Request,
    plivo: PlivoService = Depends(get_plivo_service),
    settings: Settings = Depends(get_app_settings),
    sessions: SessionRegistry = Depends(get_session_registry),
    profile: AudioProfile = Depends(get_stream_profile),
) -> Response:
    """Answer URL for calls placed through POST /calls.

    The vertical travels in the ?vertical= query parameter.
    """
    return await _stream_response(request, plivo, settings, sessions, profile)


@router.post("/webhook/hangup")
async def plivo_hangup_webhook(
    request: Request,
    sessions: SessionRegistry = Depends(get_session_registry),
) -> dict[str, bool]:
    """Handle call hangup event from Plivo.

    Expected form data:
    - CallUUID: Unique call identifier
    - Duration: Call duration in seconds
    - HangupCause: Reason for hangup
    """
    form_data = await request.form()

    call_uuid = str(form_data.get("CallUUID", ""))
    duration = str(form_data.get("Duration", "0"))
    hangup_cause = str(form_data.get("HangupCause", ""))

    logger.info(f"Call ended: {call_uuid} (duration: {duration}s, cause: {hangup_cause})")

    if call_uuid:
        await sessions.close(call_uuid)

    return {"ok": True}


@router.post("/webhook/fallback")
async def plivo_fallback_webhook(
    request: Request,
    plivo: PlivoService = Depends(get_plivo_service),
) -> Response:
    """Fallback handler for Plivo errors.

    Called when the primary answer webhook fails.
    Returns a simple apology message and hangs up.
    """
    form_data = await request.form()
    call_uuid = str(form_data.get("CallUUID", ""))
    error = str(form_data.get("ErrorMessage", "Unknown error"))

    logger.error(f"Plivo fallback triggered: {call_uuid} - {error}")

    return _xml(plivo.generate_hangup_xml(reason=UNAVAILABLE_MESSAGE))


@router.post("/calls", response_model=OutboundCallResponse)
async def place_outbound_call(
    body: OutboundCallRequest,
    request: Request,
    plivo: PlivoService = Depends(get_plivo_service),
    settings: Settings = Depends(get_app_settings),
    sessions: SessionRegistry = Depends(get_session_registry),
) -> OutboundCallResponse:
    """Place an outbound call that streams into the given vertical."""
    vertical = (body.vertical or sessions.verticals.default_id).strip().lower()
    if vertical not in sessions.verticals:
        raise HTTPException(status_code=404, detail=f"Unknown vertical: {body.vertical}")

    base_url = public_base_url(request, settings)
    try:
        call_info = await plivo.make_call(
            body.to,
            f"{base_url}/api/plivo/webhook/outbound?vertical={vertical}",
            hangup_url=f"{base_url}/api/plivo/webhook/hangup",
            fallback_url=f"{base_url}/api/plivo/webhook/fallback",
        )
    except PlivoConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Outbound call to {mask_phone(body.to)} failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to place call") from e

    return OutboundCallResponse(
        call_uuid=call_info.call_uuid,
        status=call_info.status,
        vertical=vertical,
    )


@router.get("/health")
async def plivo_health(
    plivo: PlivoService = Depends(get_plivo_service),
    sessions: SessionRegistry = Depends(get_session_registry),
) -> dict[str, Any]:
    """Check Plivo credentials and report active calls."""
    plivo_healthy = await plivo.health_check()

    return {
        "healthy": plivo_healthy,
        "active_calls": sessions.active_count,
    }
