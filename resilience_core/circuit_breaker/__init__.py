"""
Resilience Core - Circuit Breaker
=================================
Async circuit breaker guarding calls to unreliable operations.

Circuit breaker pattern prevents cascade failures when a downstream service
or asset store is unavailable. States:

1. CLOSED: Normal operation, requests flow through
2. OPEN: Service is failing, requests are immediately rejected
3. HALF-OPEN: Testing if service has recovered

Usage:
    from resilience_core.circuit_breaker import circuit_breaker, get_breaker

    @circuit_breaker("sample-library")
    async def fetch_sample(sample_id: str):
        return await storage.download(sample_id)

    # Or explicitly
    breaker = get_breaker("midi-assets")
    data = await breaker.execute(lambda: cdn.get("/midi/groove.mid"))
"""

from .models import (
    CircuitState,
    CircuitOpenError,
    CircuitBreakerMetrics,
    CircuitBreakerState,
)

from .breaker import CircuitBreaker

from .registry import (
    CircuitBreakerRegistry,
    get_breaker,
    get_all_breaker_metrics,
    reset_breaker,
    reset_all_breakers,
    remove_breaker,
    get_registered_breakers,
)

from .decorators import circuit_breaker

__all__ = [
    # Models
    "CircuitState",
    "CircuitOpenError",
    "CircuitBreakerMetrics",
    "CircuitBreakerState",
    # Breaker
    "CircuitBreaker",
    # Registry
    "CircuitBreakerRegistry",
    "get_breaker",
    "get_all_breaker_metrics",
    "reset_breaker",
    "reset_all_breakers",
    "remove_breaker",
    "get_registered_breakers",
    # Decorator
    "circuit_breaker",
]
