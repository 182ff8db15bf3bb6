"""
Shared fixtures for resilience-core tests.

Time-driven behaviour is exercised through a manual clock and a recording
sleep so recovery windows and backoff delays are deterministic.
"""

from typing import Callable, List, Optional

import pytest

from resilience_core.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry
from resilience_core.config import (
    CircuitBreakerConfig,
    ExponentialBackoffConfig,
    RetryPolicyConfig,
)
from resilience_core.errors import ErrorKind, NetworkError


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that records delays and advances the clock instead of waiting."""

    def __init__(self, clock: Optional[ManualClock] = None):
        self.clock = clock
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay)


class FixedRandom:
    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


class FlakyOperation:
    """Async operation failing ``failures`` times before returning ``result``."""

    def __init__(
        self,
        failures: int = 0,
        error_factory: Callable[[], BaseException] = lambda: NetworkError("connection reset"),
        result: str = "success",
    ):
        self.failures = failures
        self.error_factory = error_factory
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory()
        return self.result


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sleep(clock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def fixed_rng() -> FixedRandom:
    return FixedRandom(0.5)


@pytest.fixture
def fast_config() -> CircuitBreakerConfig:
    """Small thresholds and short windows, no jitter."""
    return CircuitBreakerConfig(
        failure_threshold=2,
        recovery_timeout=1.0,
        success_threshold=1,
        timeout=0.5,
        exponential_backoff=ExponentialBackoffConfig(
            base_delay=0.1,
            max_delay=1.0,
            multiplier=1.5,
            jitter=False,
        ),
        retry_policy=RetryPolicyConfig(
            max_retries=2,
            retryable_errors=frozenset({ErrorKind.NETWORK}),
        ),
    )


@pytest.fixture
def make_breaker(clock, sleep, fixed_rng):
    """Factory for breakers wired to the manual clock and recording sleep."""
    def factory(name: str, config: Optional[CircuitBreakerConfig] = None) -> CircuitBreaker:
        return CircuitBreaker(name, config, clock=clock, rng=fixed_rng, sleep=sleep)

    return factory


@pytest.fixture
def registry(make_breaker) -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(breaker_factory=make_breaker)


@pytest.fixture
def default_registry(monkeypatch) -> CircuitBreakerRegistry:
    """Fresh process default registry for the duration of a test."""
    monkeypatch.setattr(CircuitBreakerRegistry, "_instance", None)
    return CircuitBreakerRegistry.get_instance()


@pytest.fixture
def flaky():
    return FlakyOperation
