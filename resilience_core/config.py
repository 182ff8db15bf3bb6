"""
Circuit Breaker Configuration
=============================
Immutable configuration for circuit breakers, retry and backoff.

All durations are in seconds.
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Union

from .errors import ErrorKind


DEFAULT_RETRYABLE_ERRORS = frozenset({
    ErrorKind.NETWORK,
    ErrorKind.TIMEOUT,
    ErrorKind.SERVICE_UNAVAILABLE,
})


def parse_error_kinds(
    kinds: Union[str, ErrorKind, Iterable[Union[ErrorKind, str]]],
) -> FrozenSet[ErrorKind]:
    """
    Normalise kind names ("NetworkError") or members into a frozenset.

    A single name or member is treated as a one-element collection.
    """
    if isinstance(kinds, str):
        kinds = [kinds]
    parsed = set()
    for kind in kinds:
        if isinstance(kind, ErrorKind):
            parsed.add(kind)
            continue
        name = kind.strip()
        if not name:
            continue
        try:
            parsed.add(ErrorKind(name))
        except ValueError:
            try:
                parsed.add(ErrorKind[name.upper()])
            except KeyError:
                raise ValueError(f"Unknown error kind: {name!r}") from None
    return frozenset(parsed)


@dataclass(frozen=True)
class ExponentialBackoffConfig:
    """Delay growth between retry attempts."""
    base_delay: float = 1.0       # Delay before the first retry
    max_delay: float = 30.0       # Upper bound for any single delay
    multiplier: float = 2.0       # Growth factor per attempt
    jitter: bool = True           # Randomise delays to desynchronise callers

    def __post_init__(self):
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")


@dataclass(frozen=True)
class RetryPolicyConfig:
    """Which failures are retried, and how often."""
    max_retries: int = 3
    retryable_errors: FrozenSet[ErrorKind] = DEFAULT_RETRYABLE_ERRORS

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        object.__setattr__(
            self, "retryable_errors", parse_error_kinds(self.retryable_errors)
        )

    def is_retryable(self, kind: Optional[ErrorKind]) -> bool:
        return kind is not None and kind in self.retryable_errors


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    failure_threshold: int = 5        # Consecutive failed calls before opening
    recovery_timeout: float = 60.0    # Seconds to stay open before probing
    success_threshold: int = 2        # Probe successes needed to close
    timeout: float = 10.0             # Per-attempt timeout
    half_open_max_calls: int = 1      # Concurrent probes allowed in half-open
    exponential_backoff: ExponentialBackoffConfig = field(
        default_factory=ExponentialBackoffConfig
    )
    retry_policy: RetryPolicyConfig = field(default_factory=RetryPolicyConfig)

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.success_threshold < 1:
            raise ValueError("success_threshold must be >= 1")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be >= 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")

    @classmethod
    def from_env(cls, prefix: str = "CIRCUIT_BREAKER_") -> "CircuitBreakerConfig":
        """
        Build a config from environment variables.

        Unset variables fall back to the dataclass defaults. Example::

            CIRCUIT_BREAKER_FAILURE_THRESHOLD=3
            CIRCUIT_BREAKER_RETRYABLE_ERRORS=NetworkError,TimeoutError
        """
        defaults = cls()
        backoff = defaults.exponential_backoff
        policy = defaults.retry_policy

        def env(name: str) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}")

        def env_int(name: str, default: int) -> int:
            value = env(name)
            return int(value) if value is not None else default

        def env_float(name: str, default: float) -> float:
            value = env(name)
            return float(value) if value is not None else default

        def env_bool(name: str, default: bool) -> bool:
            value = env(name)
            if value is None:
                return default
            return value.strip().lower() in ("1", "true", "yes", "on")

        retryable = env("RETRYABLE_ERRORS")

        return cls(
            failure_threshold=env_int("FAILURE_THRESHOLD", defaults.failure_threshold),
            recovery_timeout=env_float("RECOVERY_TIMEOUT", defaults.recovery_timeout),
            success_threshold=env_int("SUCCESS_THRESHOLD", defaults.success_threshold),
            timeout=env_float("TIMEOUT", defaults.timeout),
            half_open_max_calls=env_int(
                "HALF_OPEN_MAX_CALLS", defaults.half_open_max_calls
            ),
            exponential_backoff=ExponentialBackoffConfig(
                base_delay=env_float("BACKOFF_BASE_DELAY", backoff.base_delay),
                max_delay=env_float("BACKOFF_MAX_DELAY", backoff.max_delay),
                multiplier=env_float("BACKOFF_MULTIPLIER", backoff.multiplier),
                jitter=env_bool("BACKOFF_JITTER", backoff.jitter),
            ),
            retry_policy=RetryPolicyConfig(
                max_retries=env_int("MAX_RETRIES", policy.max_retries),
                retryable_errors=(
                    parse_error_kinds(retryable.split(","))
                    if retryable is not None
                    else policy.retryable_errors
                ),
            ),
        )
