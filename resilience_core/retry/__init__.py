"""
Retry Logic with Exponential Backoff
=====================================
Failure classification and the retry engine used by circuit breakers.
"""

from .classification import classify_error
from .backoff import (
    RetryContext,
    compute_backoff_delay,
    retry_with_backoff,
    wait_exponential_backoff,
)

__all__ = [
    # Classification
    "classify_error",
    # Backoff
    "RetryContext",
    "compute_backoff_delay",
    "retry_with_backoff",
    "wait_exponential_backoff",
]
