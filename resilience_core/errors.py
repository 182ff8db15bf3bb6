"""
Resilience Errors
=================
Exception hierarchy and error-kind tags for guarded calls.

Every transient failure carries an explicit ``ErrorKind`` tag; the retry
engine decides retryability by comparing that tag against the configured
policy instead of inspecting class names.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Retry classification tags."""
    NETWORK = "NetworkError"
    TIMEOUT = "TimeoutError"
    SERVICE_UNAVAILABLE = "ServiceUnavailableError"
    CONNECTION = "ConnectionError"


class ResilienceError(Exception):
    """Base exception for all resilience-core errors."""

    kind: Optional[ErrorKind] = None


class NetworkError(ResilienceError):
    """Transient network failure raised by a guarded operation."""

    kind = ErrorKind.NETWORK


class ServiceUnavailableError(ResilienceError):
    """The downstream service answered but is temporarily unavailable."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class ConnectionFailedError(ResilienceError):
    """A connection to the downstream service could not be established."""

    kind = ErrorKind.CONNECTION


class OperationTimeoutError(ResilienceError, TimeoutError):
    """Raised when one attempt exceeds its allotted time."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Operation timed out after {timeout}s")


class RetryExhaustedError(ResilienceError):
    """Raised when all permitted attempts failed with retryable errors."""

    def __init__(
        self,
        breaker_name: str,
        max_retries: int,
        last_exception: Optional[BaseException] = None,
    ):
        self.breaker_name = breaker_name
        self.max_retries = max_retries
        self.last_exception = last_exception
        super().__init__(
            f"Maximum retry attempts ({max_retries}) exceeded for '{breaker_name}'"
        )
