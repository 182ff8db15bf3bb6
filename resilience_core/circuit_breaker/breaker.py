"""
Circuit Breaker Core
====================
The main CircuitBreaker class guarding calls to unreliable operations.

Each ``execute()`` call is admitted (or rejected) by the state machine,
delegated to the retry engine (a half-open recovery probe gets a single
attempt), and settled with exactly one metrics update.
"""

import asyncio
import random
import threading
import time
import uuid
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

import structlog

from ..config import CircuitBreakerConfig
from ..metrics import (
    record_call,
    record_circuit_state,
    record_rejection,
    record_retry,
)
from ..retry.backoff import RetryContext, Sleep, retry_with_backoff
from ..timeout import run_with_timeout
from .models import (
    CircuitBreakerMetrics,
    CircuitBreakerState,
    CircuitOpenError,
    CircuitState,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """
    Circuit breaker with per-attempt timeout and exponential backoff retry.

    Example:
        breaker = CircuitBreaker("sample-library", CircuitBreakerConfig(timeout=5.0))

        try:
            samples = await breaker.execute(lambda: client.get("/samples"))
        except CircuitOpenError:
            samples = cached_samples

    The clock, random source and sleep coroutine are injectable so tests can
    drive recovery windows and backoff delays deterministically.
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[Any] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._sleep = sleep
        self._state = CircuitBreakerState()
        self._active_retries: Dict[str, RetryContext] = {}
        self._generation = 0
        self._lock = threading.Lock()
        record_circuit_state(self.name, self._state.state.value)

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state.state

    def get_state(self) -> CircuitState:
        return self._state.state

    def get_metrics(self) -> CircuitBreakerMetrics:
        """Read-only snapshot of the breaker's metrics."""
        with self._lock:
            return self._state.snapshot()

    def get_active_retries(self) -> Mapping[str, RetryContext]:
        """Read-only view of the retry contexts of in-flight calls."""
        with self._lock:
            return MappingProxyType(
                {label: replace(ctx) for label, ctx in self._active_retries.items()}
            )

    # ── State machine ───────────────────────────────────────────────

    def _transition(self, new_state: CircuitState) -> None:
        """Move to ``new_state``; the caller holds the lock."""
        state = self._state
        state.state = new_state
        state.consecutive_successes = 0
        state.half_open_calls = 0
        self._generation += 1

        if new_state == CircuitState.OPEN:
            state.opened_at = self._clock()
        elif new_state == CircuitState.HALF_OPEN:
            state.failure_count = 0
        elif new_state == CircuitState.CLOSED:
            state.failure_count = 0
            state.opened_at = None

        record_circuit_state(self.name, new_state.value)

    def _retry_after(self) -> float:
        opened_at = self._state.opened_at
        if opened_at is None:
            return 0.0
        return self.config.recovery_timeout - (self._clock() - opened_at)

    def _pre_check(self) -> Optional[int]:
        """
        Admit or reject a call.

        Returns None for a normal call. A half-open probe gets the
        generation of the half-open cycle that admitted it, so a probe
        settling after the circuit has moved on never frees a slot of a
        later cycle.

        Raises:
            CircuitOpenError: If the call is rejected
        """
        with self._lock:
            state = self._state

            if state.state == CircuitState.CLOSED:
                return None

            if state.state == CircuitState.OPEN:
                if self._retry_after() <= 0:
                    self._transition(CircuitState.HALF_OPEN)
                    state.half_open_calls = 1
                    logger.info("circuit_half_open", service=self.name)
                    return self._generation
                retry_after = self._retry_after()

            elif state.half_open_calls < self.config.half_open_max_calls:
                state.half_open_calls += 1
                return self._generation

            else:
                retry_after = 0.0

            state.rejected_count += 1
            rejected_state = state.state

        record_rejection(self.name)
        logger.debug("circuit_rejected", service=self.name, state=rejected_state.value)
        raise CircuitOpenError(self.name, rejected_state, retry_after)

    def _release_probe(self, probe: Optional[int]) -> None:
        """Free a half-open probe slot; the caller holds the lock."""
        state = self._state
        if probe is None or probe != self._generation:
            return
        if state.state == CircuitState.HALF_OPEN:
            state.half_open_calls = max(0, state.half_open_calls - 1)

    def _record_success(self, elapsed: float, probe: Optional[int]) -> None:
        """Record a successful call."""
        with self._lock:
            state = self._state
            state.total_requests += 1
            state.total_response_time += elapsed
            state.success_count += 1
            state.last_success_time = self._clock()
            self._release_probe(probe)

            if state.state == CircuitState.HALF_OPEN:
                state.consecutive_successes += 1
                if state.consecutive_successes >= self.config.success_threshold:
                    self._transition(CircuitState.CLOSED)
                    logger.info("circuit_closed", service=self.name)

            elif state.state == CircuitState.CLOSED:
                state.failure_count = 0

        record_call(self.name, "success", elapsed)

    def _record_failure(
        self, exc: BaseException, elapsed: float, probe: Optional[int]
    ) -> None:
        """Record a failed call."""
        with self._lock:
            state = self._state
            state.total_requests += 1
            state.total_response_time += elapsed
            state.failure_count += 1
            state.last_failure_time = self._clock()
            self._release_probe(probe)

            if state.state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
                logger.warning("circuit_reopened", service=self.name, error=str(exc))

            elif state.state == CircuitState.CLOSED:
                if state.failure_count >= self.config.failure_threshold:
                    self._transition(CircuitState.OPEN)
                    logger.warning(
                        "circuit_opened",
                        service=self.name,
                        failures=state.failure_count,
                        error=str(exc),
                    )

        record_call(self.name, "failure", elapsed)

    # ── Call contract ───────────────────────────────────────────────

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        label: Optional[str] = None,
    ) -> T:
        """
        Execute an operation with circuit breaker protection.

        Args:
            operation: Zero-argument callable producing an awaitable
            label: Diagnostic label; keys the call's retry context

        Returns:
            Result of the operation

        Raises:
            CircuitOpenError: If the circuit rejects the call
            OperationTimeoutError: If a non-retried attempt timed out
            RetryExhaustedError: If all permitted attempts failed
            Exception: The operation's own failure when it is not retryable
        """
        probe = self._pre_check()

        label = label or f"{self.name}-{uuid.uuid4().hex}"
        context = RetryContext(
            next_retry_delay=self.config.exponential_backoff.base_delay
        )
        with self._lock:
            self._active_retries[label] = context

        started = self._clock()
        try:
            if probe is not None:
                # Recovery probes get exactly one attempt; failures surface unchanged
                context.attempt = 1
                result = await run_with_timeout(operation, self.config.timeout)
            else:
                result = await retry_with_backoff(
                    operation,
                    name=self.name,
                    policy=self.config.retry_policy,
                    backoff=self.config.exponential_backoff,
                    timeout=self.config.timeout,
                    context=context,
                    rng=self._rng,
                    sleep=self._sleep,
                    label=label,
                    on_retry=lambda _ctx: record_retry(self.name),
                )
        except Exception as e:
            self._record_failure(e, self._clock() - started, probe)
            raise
        except BaseException:
            # Cancelled by the caller: neither a success nor a failure
            with self._lock:
                self._release_probe(probe)
            raise
        finally:
            with self._lock:
                if self._active_retries.get(label) is context:
                    del self._active_retries[label]

        self._record_success(self._clock() - started, probe)
        return result

    # ── Manual control ──────────────────────────────────────────────

    def force_open(self) -> None:
        """Force the circuit open; it probes again after ``recovery_timeout``."""
        with self._lock:
            self._transition(CircuitState.OPEN)
        logger.warning("circuit_force_opened", service=self.name)

    def reset(self) -> None:
        """Reset to a freshly constructed state (for testing/admin)."""
        with self._lock:
            self._state = CircuitBreakerState()
            self._active_retries.clear()
            self._generation += 1
        record_circuit_state(self.name, CircuitState.CLOSED.value)
        logger.info("circuit_reset", service=self.name)
