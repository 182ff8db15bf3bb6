"""
Circuit Breaker Registry
========================
Named collection of circuit breaker instances.

Applications create one ``CircuitBreakerRegistry`` at startup and hand it to
the subsystems that need breakers. ``CircuitBreakerRegistry.get_instance()``
and the module-level helpers operate on the process default registry.
"""

import threading
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..config import CircuitBreakerConfig
from ..metrics import remove_breaker_series
from .breaker import CircuitBreaker
from .models import CircuitBreakerMetrics

logger = structlog.get_logger(__name__)


class CircuitBreakerRegistry:
    """
    Manages named ``CircuitBreaker`` instances.

    Usage::

        registry = CircuitBreakerRegistry()
        breaker = registry.get_breaker("sample-library", CircuitBreakerConfig(timeout=5.0))
        result = await breaker.execute(fetch_samples)

    The first ``get_breaker`` call for a name decides its configuration;
    configs passed on later calls for the same name are ignored.
    """

    _instance: Optional["CircuitBreakerRegistry"] = None
    _instance_lock = threading.Lock()

    def __init__(self, breaker_factory: Callable[..., CircuitBreaker] = CircuitBreaker):
        self._breaker_factory = breaker_factory
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "CircuitBreakerRegistry":
        """Return the process default registry."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_breaker(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> CircuitBreaker:
        """
        Get or create a circuit breaker.

        Args:
            name: Name of the protected service or resource
            config: Optional configuration (only used if creating new breaker)

        Returns:
            CircuitBreaker instance
        """
        breaker = self._breakers.get(name)
        if breaker is None:
            with self._lock:
                breaker = self._breakers.get(name)
                if breaker is None:
                    breaker = self._breaker_factory(name, config)
                    self._breakers[name] = breaker
                    logger.debug("circuit_registered", service=name)
        return breaker

    def get_all_metrics(self) -> Dict[str, CircuitBreakerMetrics]:
        """Get metrics snapshots for all registered circuit breakers."""
        return {
            name: breaker.get_metrics()
            for name, breaker in list(self._breakers.items())
        }

    def reset(self, name: str) -> bool:
        """Reset one circuit breaker; returns whether it exists."""
        breaker = self._breakers.get(name)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def reset_all(self) -> None:
        """Reset every circuit breaker to its initial state."""
        for breaker in list(self._breakers.values()):
            breaker.reset()

    def remove(self, name: str) -> bool:
        """Discard a circuit breaker; returns whether it existed."""
        with self._lock:
            breaker = self._breakers.pop(name, None)
        if breaker is None:
            return False
        remove_breaker_series(name)
        logger.debug("circuit_removed", service=name)
        return True

    def clear(self) -> None:
        """Discard all circuit breakers."""
        with self._lock:
            names = list(self._breakers)
            self._breakers.clear()
        for name in names:
            remove_breaker_series(name)

    def names(self) -> List[str]:
        return list(self._breakers)

    def breakers(self) -> Dict[str, CircuitBreaker]:
        return dict(self._breakers)

    def __contains__(self, name: object) -> bool:
        return name in self._breakers

    def __len__(self) -> int:
        return len(self._breakers)


def get_breaker(
    service_name: str,
    config: Optional[CircuitBreakerConfig] = None,
) -> CircuitBreaker:
    """Get or create a circuit breaker in the default registry."""
    return CircuitBreakerRegistry.get_instance().get_breaker(service_name, config)


def get_all_breaker_metrics() -> Dict[str, Dict[str, Any]]:
    """Get metrics for all circuit breakers in the default registry."""
    return {
        name: metrics.to_dict()
        for name, metrics in CircuitBreakerRegistry.get_instance().get_all_metrics().items()
    }


def reset_breaker(service_name: str) -> bool:
    """Reset a circuit breaker to closed state (for testing/admin)."""
    return CircuitBreakerRegistry.get_instance().reset(service_name)


def reset_all_breakers() -> None:
    """Reset all circuit breakers to closed state."""
    CircuitBreakerRegistry.get_instance().reset_all()


def remove_breaker(service_name: str) -> bool:
    return CircuitBreakerRegistry.get_instance().remove(service_name)


def get_registered_breakers() -> Dict[str, CircuitBreaker]:
    """Get all registered circuit breakers."""
    return CircuitBreakerRegistry.get_instance().breakers()
