"""Core call orchestration: session state, timers, response pipeline."""

from voicedesk.core.orchestrator import SessionOrchestrator, SessionServices
from voicedesk.core.pipeline import AudioSender, ResponsePipeline
from voicedesk.core.registry import CallCapacityError, SessionRegistry
from voicedesk.core.session import CallSession
from voicedesk.core.turns import TurnController

__all__ = [
    "AudioSender",
    "CallCapacityError",
    "CallSession",
    "ResponsePipeline",
    "SessionOrchestrator",
    "SessionRegistry",
    "SessionServices",
    "TurnController",
]
