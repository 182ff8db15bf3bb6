"""
Circuit Breaker Prometheus Metrics
==================================
Prometheus metric definitions and recording helpers for circuit breakers.

Usage:
    from resilience_core.metrics import get_metrics_text, CONTENT_TYPE_LATEST

    @app.get("/metrics")
    async def metrics():
        return Response(get_metrics_text(), media_type=CONTENT_TYPE_LATEST)
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Custom registry for resilience metrics
RESILIENCE_REGISTRY = CollectorRegistry()

CIRCUIT_BREAKER_STATE = Gauge(
    name="circuit_breaker_state",
    documentation="Circuit breaker state (0=closed, 1=half_open, 2=open)",
    labelnames=["breaker"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_CALLS = Counter(
    name="circuit_breaker_calls_total",
    documentation="Guarded calls by outcome (success, failure, rejected)",
    labelnames=["breaker", "outcome"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_RETRIES = Counter(
    name="circuit_breaker_retries_total",
    documentation="Retry attempts scheduled by circuit breakers",
    labelnames=["breaker"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_CALL_DURATION = Histogram(
    name="circuit_breaker_call_duration_seconds",
    documentation="Duration of guarded calls including retries",
    labelnames=["breaker", "outcome"],
    buckets=[
        0.005, 0.01, 0.025, 0.05, 0.1,
        0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0,
    ],
    registry=RESILIENCE_REGISTRY,
)

_STATE_VALUES = {"closed": 0, "half_open": 1, "open": 2}

# Durations are only observed for settled calls, never for rejections
_OUTCOMES = ("success", "failure", "rejected")


def record_circuit_state(breaker: str, state: str) -> None:
    """
    Record circuit breaker state change.

    Args:
        breaker: Circuit breaker name
        state: State (closed, half_open, open)
    """
    CIRCUIT_BREAKER_STATE.labels(breaker=breaker).set(_STATE_VALUES.get(state, -1))


def record_call(breaker: str, outcome: str, duration_seconds: float) -> None:
    """
    Record a settled guarded call.

    Args:
        breaker: Circuit breaker name
        outcome: success or failure
        duration_seconds: Wall time of the call including retries
    """
    CIRCUIT_BREAKER_CALLS.labels(breaker=breaker, outcome=outcome).inc()
    CIRCUIT_BREAKER_CALL_DURATION.labels(
        breaker=breaker, outcome=outcome
    ).observe(duration_seconds)


def record_rejection(breaker: str) -> None:
    CIRCUIT_BREAKER_CALLS.labels(breaker=breaker, outcome="rejected").inc()


def record_retry(breaker: str) -> None:
    CIRCUIT_BREAKER_RETRIES.labels(breaker=breaker).inc()


def remove_breaker_series(breaker: str) -> None:
    """
    Drop every series labelled with ``breaker``.

    Series are keyed by breaker name only, so same-named breakers living in
    different registries share (and lose) the same series.
    """
    for metric, labelvalues in (
        (CIRCUIT_BREAKER_STATE, [(breaker,)]),
        (CIRCUIT_BREAKER_RETRIES, [(breaker,)]),
        (CIRCUIT_BREAKER_CALLS, [(breaker, o) for o in _OUTCOMES]),
        (CIRCUIT_BREAKER_CALL_DURATION, [(breaker, o) for o in _OUTCOMES[:2]]),
    ):
        for values in labelvalues:
            try:
                metric.remove(*values)
            except KeyError:
                pass


def get_metrics_text() -> bytes:
    """Render all resilience metrics in Prometheus text format."""
    return generate_latest(RESILIENCE_REGISTRY)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "RESILIENCE_REGISTRY",
    "CIRCUIT_BREAKER_STATE",
    "CIRCUIT_BREAKER_CALLS",
    "CIRCUIT_BREAKER_RETRIES",
    "CIRCUIT_BREAKER_CALL_DURATION",
    "record_circuit_state",
    "record_call",
    "record_rejection",
    "record_retry",
    "remove_breaker_series",
    "get_metrics_text",
]
