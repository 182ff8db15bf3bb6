"""
Circuit Breaker Decorator
=========================
Decorator for wrapping async functions with circuit breaker protection.
"""

from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

from ..config import CircuitBreakerConfig
from .registry import CircuitBreakerRegistry

T = TypeVar("T")


def circuit_breaker(
    service_name: str,
    config: Optional[CircuitBreakerConfig] = None,
    registry: Optional[CircuitBreakerRegistry] = None,
    label: Optional[str] = None,
):
    """
    Decorator to wrap async functions with a circuit breaker.

    The breaker is looked up in ``registry`` (the default registry when
    omitted) on every call, so a registry ``remove``/``clear`` takes effect
    for decorated functions too.

    Example:
        @circuit_breaker("sample-library")
        async def fetch_sample(sample_id: str):
            return await storage.download(f"samples/{sample_id}.wav")

        @circuit_breaker("midi-assets", config=CircuitBreakerConfig(timeout=2.0))
        async def load_midi(path: str):
            return await cdn.get(path)
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            owner = registry if registry is not None else CircuitBreakerRegistry.get_instance()
            breaker = owner.get_breaker(service_name, config)
            return await breaker.execute(
                lambda: func(*args, **kwargs),
                label=label,
            )

        return wrapper

    return decorator
