"""
Tests for circuit breaker configuration.
"""

import dataclasses
import os

import pytest

from resilience_core.config import (
    CircuitBreakerConfig,
    ExponentialBackoffConfig,
    RetryPolicyConfig,
    parse_error_kinds,
)
from resilience_core.errors import ErrorKind


class TestCircuitBreakerConfig:
    """Defaults and validation."""

    def test_defaults(self):
        config = CircuitBreakerConfig()

        assert config.failure_threshold == 5
        assert config.recovery_timeout == 60.0
        assert config.success_threshold == 2
        assert config.timeout == 10.0
        assert config.half_open_max_calls == 1
        assert config.exponential_backoff == ExponentialBackoffConfig(
            base_delay=1.0, max_delay=30.0, multiplier=2.0, jitter=True
        )
        assert config.retry_policy.max_retries == 3
        assert config.retry_policy.retryable_errors == {
            ErrorKind.NETWORK,
            ErrorKind.TIMEOUT,
            ErrorKind.SERVICE_UNAVAILABLE,
        }

    def test_is_immutable(self):
        config = CircuitBreakerConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.failure_threshold = 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"failure_threshold": 0},
            {"success_threshold": 0},
            {"half_open_max_calls": 0},
            {"timeout": 0},
            {"recovery_timeout": -1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            CircuitBreakerConfig(**kwargs)

    def test_rejects_invalid_backoff(self):
        with pytest.raises(ValueError):
            ExponentialBackoffConfig(base_delay=2.0, max_delay=1.0)
        with pytest.raises(ValueError):
            ExponentialBackoffConfig(multiplier=0.5)


class TestRetryPolicyConfig:
    """Retryable error kinds."""

    def test_accepts_kind_names(self):
        policy = RetryPolicyConfig(retryable_errors=["NetworkError", "TimeoutError"])
        assert policy.retryable_errors == {ErrorKind.NETWORK, ErrorKind.TIMEOUT}

    def test_is_retryable(self):
        policy = RetryPolicyConfig(retryable_errors=[ErrorKind.NETWORK])
        assert policy.is_retryable(ErrorKind.NETWORK)
        assert not policy.is_retryable(ErrorKind.TIMEOUT)
        assert not policy.is_retryable(None)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="Unknown error kind"):
            RetryPolicyConfig(retryable_errors=["DiskFullError"])

    def test_parse_error_kinds_accepts_member_names(self):
        assert parse_error_kinds(["service_unavailable", " ", "ConnectionError"]) == {
            ErrorKind.SERVICE_UNAVAILABLE,
            ErrorKind.CONNECTION,
        }

    def test_single_kind_name(self):
        policy = RetryPolicyConfig(retryable_errors="NetworkError")
        assert policy.retryable_errors == {ErrorKind.NETWORK}
        assert parse_error_kinds(ErrorKind.TIMEOUT) == {ErrorKind.TIMEOUT}

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicyConfig(max_retries=-1)


class TestFromEnv:
    """Environment loading."""

    def test_unset_variables_fall_back_to_defaults(self, monkeypatch):
        for key in list(os.environ):
            if key.startswith("CIRCUIT_BREAKER_"):
                monkeypatch.delenv(key)

        assert CircuitBreakerConfig.from_env() == CircuitBreakerConfig()

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("ASSETS_CB_FAILURE_THRESHOLD", "3")
        monkeypatch.setenv("ASSETS_CB_RECOVERY_TIMEOUT", "15.5")
        monkeypatch.setenv("ASSETS_CB_TIMEOUT", "2")
        monkeypatch.setenv("ASSETS_CB_BACKOFF_JITTER", "false")
        monkeypatch.setenv("ASSETS_CB_BACKOFF_BASE_DELAY", "0.25")
        monkeypatch.setenv("ASSETS_CB_MAX_RETRIES", "5")
        monkeypatch.setenv("ASSETS_CB_RETRYABLE_ERRORS", "NetworkError,ConnectionError")

        config = CircuitBreakerConfig.from_env(prefix="ASSETS_CB_")

        assert config.failure_threshold == 3
        assert config.recovery_timeout == 15.5
        assert config.timeout == 2.0
        assert config.success_threshold == 2
        assert config.exponential_backoff.jitter is False
        assert config.exponential_backoff.base_delay == 0.25
        assert config.retry_policy.max_retries == 5
        assert config.retry_policy.retryable_errors == {
            ErrorKind.NETWORK,
            ErrorKind.CONNECTION,
        }
