"""FastAPI dependencies for objects built once per application."""

from __future__ import annotations

from fastapi import Depends, Request

from voicedesk.config import Settings
from voicedesk.core.registry import SessionRegistry
from voicedesk.services.llm.brain import ReasoningEngine
from voicedesk.services.profiles import AudioProfile
from voicedesk.services.telephony.plivo import PlivoService
from voicedesk.services.tts.synthesizer import SpeechSynthesizer
from voicedesk.verticals.registry import VerticalRegistry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_verticals(request: Request) -> VerticalRegistry:
    return request.app.state.verticals


def get_reasoning(request: Request) -> ReasoningEngine:
    return request.app.state.reasoning


def get_browser_synthesizer(request: Request) -> SpeechSynthesizer:
    return request.app.state.browser_synthesizer


def get_plivo_service(settings: Settings = Depends(get_app_settings)) -> PlivoService:
    """Dependency injection for PlivoService."""
    return PlivoService(settings=settings)


def get_stream_profile(request: Request) -> AudioProfile:
    return request.app.state.profile
