"""
Timeout Guard
=============
Races one attempt of an operation against a deadline.

The operation runs as its own task; ``asyncio.wait`` arms the deadline timer
and disarms it on every exit path. When the deadline wins, the task is
cancelled and its eventual outcome is discarded.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

import structlog

from .errors import OperationTimeoutError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[], Union[Awaitable[T], T]]


async def _invoke(operation: Operation) -> Any:
    result = operation()
    if inspect.isawaitable(result):
        result = await result
    return result


def _discard_outcome(task: "asyncio.Task[Any]") -> None:
    """Retrieve an abandoned task's outcome so it is never reported as unhandled."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("abandoned_operation_failed", error=str(exc))


async def run_with_timeout(operation: Operation, timeout: float) -> Any:
    """
    Run ``operation`` and wait at most ``timeout`` seconds for it.

    Args:
        operation: Zero-argument callable returning an awaitable (or a value)
        timeout: Deadline in seconds

    Returns:
        The operation's result

    Raises:
        OperationTimeoutError: If the deadline elapses first
        Exception: Whatever the operation raised, unchanged
    """
    task = asyncio.ensure_future(_invoke(operation))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_discard_outcome)
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_outcome)
    logger.debug("operation_timed_out", timeout=timeout)
    raise OperationTimeoutError(timeout)
