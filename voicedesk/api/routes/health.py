"""Health check and service info endpoints.

Provides:
- Basic health check (GET /health)
- Default vertical info (GET /config)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from voicedesk.api.deps import get_session_registry, get_verticals
from voicedesk.core.registry import SessionRegistry
from voicedesk.verticals.registry import VerticalRegistry

router = APIRouter()


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    vertical: str
    active_calls: int


class ConfigResponse(BaseModel):
    """Default vertical served by this process."""

    vertical: str
    name: str
    greeting: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    sessions: SessionRegistry = Depends(get_session_registry),
) -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        Status, default vertical and number of active calls.
    """
    return HealthResponse(
        status="healthy",
        vertical=sessions.verticals.default_id,
        active_calls=sessions.active_count,
    )


@router.get("/config", response_model=ConfigResponse)
async def service_config(
    verticals: VerticalRegistry = Depends(get_verticals),
) -> ConfigResponse:
    default = verticals.default
    return ConfigResponse(
        vertical=verticals.default_id,
        name=default.name,
        greeting=default.greeting,
    )
