"""Prometheus metrics for the voicedesk call orchestrator.

Provides metrics for monitoring call volume, turn outcomes, and provider latency.
"""

from __future__ import annotations

from typing import Literal

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

TurnOutcome = Literal["replied", "fallback", "silent"]

# =============================================================================
# Counters
# =============================================================================

CALL_TOTAL = Counter(
    "voicedesk_call_total",
    "Total calls handled by the orchestrator",
    ["vertical"],
)

TURN_TOTAL = Counter(
    "voicedesk_turn_total",
    "Caller turns processed, by outcome",
    ["vertical", "outcome"],
)

TURN_TIMEOUT_TOTAL = Counter(
    "voicedesk_turn_timeout_total",
    "Turns that exceeded the maximum turn duration",
    ["vertical"],
)

STT_RECONNECT_TOTAL = Counter(
    "voicedesk_stt_reconnect_total",
    "Speech-to-text connections reopened after a provider disconnect",
)

# =============================================================================
# Gauges
# =============================================================================

ACTIVE_CALLS = Gauge(
    "voicedesk_active_calls",
    "Currently active calls",
    ["vertical"],
)

# =============================================================================
# Histograms
# =============================================================================

CALL_DURATION = Histogram(
    "voicedesk_call_duration_seconds",
    "Call duration in seconds",
    buckets=[10, 30, 60, 120, 300, 600, 900, 1800],
)

REASONING_LATENCY = Histogram(
    "voicedesk_reasoning_latency_seconds",
    "Time to produce one agent reply",
    buckets=[0.1, 0.25, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0],
)

SYNTHESIS_LATENCY = Histogram(
    "voicedesk_synthesis_latency_seconds",
    "Time to synthesize one agent reply",
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 1.5, 2.0, 5.0],
)

# =============================================================================
# Helper Functions
# =============================================================================


def record_call_started(vertical: str) -> None:
    """Count a new call and mark it active."""
    CALL_TOTAL.labels(vertical=vertical).inc()
    ACTIVE_CALLS.labels(vertical=vertical).inc()


def record_call_ended(vertical: str, duration_seconds: float) -> None:
    """Release an active call slot and record its duration."""
    ACTIVE_CALLS.labels(vertical=vertical).dec()
    CALL_DURATION.observe(max(duration_seconds, 0.0))


def record_turn(
    vertical: str,
    outcome: TurnOutcome,
    *,
    reasoning_seconds: float | None = None,
    synthesis_seconds: float | None = None,
) -> None:
    """Record one processed caller turn.

    Args:
        vertical: Vertical id of the call
        outcome: replied, fallback (fallback phrase spoken) or silent (nothing sent)
        reasoning_seconds: Reasoning latency, if reasoning completed
        synthesis_seconds: Synthesis latency, if synthesis completed
    """
    TURN_TOTAL.labels(vertical=vertical, outcome=outcome).inc()

    if reasoning_seconds is not None:
        REASONING_LATENCY.observe(reasoning_seconds)

    if synthesis_seconds is not None:
        SYNTHESIS_LATENCY.observe(synthesis_seconds)


def record_turn_timeout(vertical: str) -> None:
    """Record a turn released by the maximum turn duration timer."""
    TURN_TIMEOUT_TOTAL.labels(vertical=vertical).inc()


def record_stt_reconnect() -> None:
    """Record a speech-to-text reconnect."""
    STT_RECONNECT_TOTAL.inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output.

    Returns:
        Metrics in Prometheus text exposition format.
    """
    return generate_latest()


def get_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
