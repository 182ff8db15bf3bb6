"""
Circuit Breaker Models
======================
Data models and enums for the circuit breaker pattern.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import ResilienceError


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitOpenError(ResilienceError):
    """Raised when circuit is open and request is rejected."""

    def __init__(self, breaker_name: str, state: CircuitState, retry_after: float):
        self.breaker_name = breaker_name
        self.state = state
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"Circuit breaker '{breaker_name}' is {state.name}. "
            f"Service unavailable, retry after {self.retry_after:.1f}s"
        )


@dataclass(frozen=True)
class CircuitBreakerMetrics:
    """Point-in-time snapshot of a circuit breaker's metrics."""
    state: CircuitState
    failure_count: int
    success_count: int
    consecutive_successes: int
    rejected_count: int
    total_requests: int
    average_response_time: float
    uptime: float
    last_failure_time: Optional[float] = None
    last_success_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data


@dataclass
class CircuitBreakerState:
    """Runtime state of a circuit breaker."""
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0            # Consecutive failed calls
    consecutive_successes: int = 0    # Successful probes while half-open
    opened_at: Optional[float] = None
    last_failure_time: Optional[float] = None
    last_success_time: Optional[float] = None
    half_open_calls: int = 0          # Probes currently in flight

    # Metrics
    success_count: int = 0
    rejected_count: int = 0
    total_requests: int = 0
    total_response_time: float = 0.0

    def snapshot(self) -> CircuitBreakerMetrics:
        attempted = self.total_requests + self.rejected_count
        uptime = (self.total_requests / attempted) * 100 if attempted else 100.0
        average = (
            self.total_response_time / self.total_requests
            if self.total_requests
            else 0.0
        )
        return CircuitBreakerMetrics(
            state=self.state,
            failure_count=self.failure_count,
            success_count=self.success_count,
            consecutive_successes=self.consecutive_successes,
            rejected_count=self.rejected_count,
            total_requests=self.total_requests,
            average_response_time=average,
            uptime=uptime,
            last_failure_time=self.last_failure_time,
            last_success_time=self.last_success_time,
        )
