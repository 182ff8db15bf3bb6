"""
Retry Backoff
=============
Exponential backoff retry engine for guarded operations.

Each attempt runs through the timeout guard. Failures are classified by
``ErrorKind``; only kinds listed in the retry policy are retried, and at
most ``max_retries`` retries follow the first attempt.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from ..config import ExponentialBackoffConfig, RetryPolicyConfig
from ..errors import RetryExhaustedError
from ..timeout import Operation, run_with_timeout
from .classification import classify_error

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryContext:
    """Progress of one in-flight guarded call."""
    attempt: int = 0                          # Attempts started so far
    total_elapsed: float = 0.0                # Seconds spent waiting between attempts
    next_retry_delay: float = 0.0             # Delay before the next attempt
    last_error: Optional[BaseException] = None


def compute_backoff_delay(
    attempt_index: int,
    backoff: ExponentialBackoffConfig,
    rng: Any = random,
) -> float:
    """
    Delay before retry number ``attempt_index + 1``.

    ``min(base_delay * multiplier ** attempt_index, max_delay)``, scaled by a
    factor in [0.5, 1.5) drawn from ``rng`` when jitter is enabled and capped
    at ``max_delay`` again.
    """
    delay = min(
        backoff.base_delay * (backoff.multiplier ** attempt_index),
        backoff.max_delay,
    )
    if backoff.jitter:
        delay = min(delay * (0.5 + rng.random()), backoff.max_delay)
    return delay


class wait_exponential_backoff(wait_base):
    """Tenacity wait strategy backed by ``compute_backoff_delay``."""

    def __init__(self, backoff: ExponentialBackoffConfig, rng: Any = random) -> None:
        self.backoff = backoff
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return compute_backoff_delay(
            retry_state.attempt_number - 1, self.backoff, self.rng
        )


async def retry_with_backoff(
    operation: Operation,
    *,
    name: str,
    policy: RetryPolicyConfig,
    backoff: ExponentialBackoffConfig,
    timeout: float,
    context: Optional[RetryContext] = None,
    rng: Any = random,
    sleep: Sleep = asyncio.sleep,
    label: Optional[str] = None,
    on_retry: Optional[Callable[[RetryContext], None]] = None,
) -> Any:
    """
    Execute an operation with timeout and exponential backoff retry.

    Args:
        operation: Zero-argument callable producing an awaitable
        name: Owner name used in log events and errors
        policy: Retry limits and retryable error kinds
        backoff: Delay growth between attempts
        timeout: Per-attempt timeout in seconds
        context: Progress record to update; a fresh one is used if omitted
        rng: Random source for jitter (anything with ``random()``)
        sleep: Coroutine used to wait between attempts
        label: Diagnostic label of the call
        on_retry: Called with the context before each backoff wait

    Returns:
        Result of the operation

    Raises:
        RetryExhaustedError: If every permitted attempt failed retryably
        Exception: The original failure when it is not retryable
    """
    if context is None:
        context = RetryContext(next_retry_delay=backoff.base_delay)

    def is_retryable(exc: BaseException) -> bool:
        return policy.is_retryable(classify_error(exc))

    def before_sleep(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep
        error = retry_state.outcome.exception()
        context.next_retry_delay = delay
        context.total_elapsed += delay
        context.last_error = error
        logger.warning(
            "retry_scheduled",
            service=name,
            operation=label,
            attempt=retry_state.attempt_number,
            max_retries=policy.max_retries,
            delay=delay,
            error=str(error),
        )
        if on_retry is not None:
            on_retry(context)

    async def attempt() -> Any:
        context.attempt += 1
        return await run_with_timeout(operation, timeout)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential_backoff(backoff, rng),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=False,
    )

    try:
        return await retrying(attempt)
    except RetryError as e:
        last_exception = e.last_attempt.exception()
        context.last_error = last_exception
        logger.error(
            "retry_exhausted",
            service=name,
            operation=label,
            attempts=context.attempt,
            error=str(last_exception),
        )
        raise RetryExhaustedError(name, policy.max_retries, last_exception) from last_exception
