"""Observability module for metrics."""

from voicedesk.observability.metrics import (
    ACTIVE_CALLS,
    CALL_DURATION,
    CALL_TOTAL,
    REASONING_LATENCY,
    STT_RECONNECT_TOTAL,
    SYNTHESIS_LATENCY,
    TURN_TIMEOUT_TOTAL,
    TURN_TOTAL,
    record_call_ended,
    record_call_started,
    record_stt_reconnect,
    record_turn,
    record_turn_timeout,
)

__all__ = [
    "CALL_TOTAL",
    "CALL_DURATION",
    "ACTIVE_CALLS",
    "TURN_TOTAL",
    "TURN_TIMEOUT_TOTAL",
    "STT_RECONNECT_TOTAL",
    "REASONING_LATENCY",
    "SYNTHESIS_LATENCY",
    "record_call_started",
    "record_call_ended",
    "record_turn",
    "record_turn_timeout",
    "record_stt_reconnect",
]
