"""
Resilience Core Library
=======================
Failure protection for calls to unreliable operations: per-attempt timeouts,
exponential backoff retry and circuit breakers.
"""

__version__ = "0.1.0"

# Errors
from resilience_core.errors import (
    ErrorKind,
    ResilienceError,
    NetworkError,
    ServiceUnavailableError,
    ConnectionFailedError,
    OperationTimeoutError,
    RetryExhaustedError,
)

# Configuration
from resilience_core.config import (
    CircuitBreakerConfig,
    ExponentialBackoffConfig,
    RetryPolicyConfig,
)

# Timeout
from resilience_core.timeout import run_with_timeout

# Retry
from resilience_core.retry import (
    RetryContext,
    classify_error,
    compute_backoff_delay,
    retry_with_backoff,
)

# Circuit Breaker
from resilience_core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerMetrics,
    CircuitBreakerRegistry,
    CircuitOpenError,
    CircuitState,
    circuit_breaker,
    get_breaker,
    get_all_breaker_metrics,
    reset_breaker,
    reset_all_breakers,
    remove_breaker,
    get_registered_breakers,
)

__all__ = [
    # Errors
    "ErrorKind",
    "ResilienceError",
    "NetworkError",
    "ServiceUnavailableError",
    "ConnectionFailedError",
    "OperationTimeoutError",
    "RetryExhaustedError",
    # Configuration
    "CircuitBreakerConfig",
    "ExponentialBackoffConfig",
    "RetryPolicyConfig",
    # Timeout
    "run_with_timeout",
    # Retry
    "RetryContext",
    "classify_error",
    "compute_backoff_delay",
    "retry_with_backoff",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerMetrics",
    "CircuitBreakerRegistry",
    "CircuitOpenError",
    "CircuitState",
    "circuit_breaker",
    "get_breaker",
    "get_all_breaker_metrics",
    "reset_breaker",
    "reset_all_breakers",
    "remove_breaker",
    "get_registered_breakers",
]
