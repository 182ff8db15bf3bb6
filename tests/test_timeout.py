"""
Tests for the per-attempt timeout guard.

These use short real timers.
"""

import asyncio
import time

import pytest

from resilience_core.errors import ErrorKind, OperationTimeoutError
from resilience_core.timeout import run_with_timeout


class TestRunWithTimeout:
    """Racing an operation against its deadline."""

    @pytest.mark.asyncio
    async def test_returns_result_when_operation_wins(self):
        """Should return the operation's result."""
        async def fetch():
            return "manifest"

        assert await run_with_timeout(fetch, timeout=1.0) == "manifest"

    @pytest.mark.asyncio
    async def test_accepts_plain_callables(self):
        """A callable returning a value directly is accepted."""
        assert await run_with_timeout(lambda: 42, timeout=1.0) == 42

    @pytest.mark.asyncio
    async def test_raises_timeout_citing_configured_value(self):
        """Should fail with the configured timeout in the message."""
        async def slow():
            await asyncio.sleep(5)
            return "late"

        started = time.monotonic()
        with pytest.raises(OperationTimeoutError, match="0.05s") as excinfo:
            await run_with_timeout(slow, timeout=0.05)

        assert time.monotonic() - started < 2.0
        assert excinfo.value.timeout == 0.05
        assert excinfo.value.kind is ErrorKind.TIMEOUT
        assert isinstance(excinfo.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_propagates_operation_failure_unchanged(self):
        """The operation's own exception object surfaces as-is."""
        error = KeyError("sample-42")

        async def broken():
            raise error

        with pytest.raises(KeyError) as excinfo:
            await run_with_timeout(broken, timeout=1.0)

        assert excinfo.value is error

    @pytest.mark.asyncio
    async def test_abandoned_operation_is_cancelled(self):
        """The losing operation is cancelled and leaves no pending tasks."""
        cancelled = asyncio.Event()

        async def hanging():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(OperationTimeoutError):
            await run_with_timeout(hanging, timeout=0.02)

        await asyncio.wait_for(cancelled.wait(), timeout=1.0)
        await asyncio.sleep(0)
        assert asyncio.all_tasks() == {asyncio.current_task()}

    @pytest.mark.asyncio
    async def test_late_failure_of_abandoned_operation_is_discarded(self):
        """An operation that ignores cancellation and fails later is not re-raised."""
        finished = asyncio.Event()

        async def stubborn():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                pass
            finished.set()
            raise RuntimeError("too late")

        with pytest.raises(OperationTimeoutError):
            await run_with_timeout(stubborn, timeout=0.02)

        await asyncio.wait_for(finished.wait(), timeout=1.0)
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_operation(self):
        """Cancelling the waiter cancels the running operation too."""
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def hanging():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        waiter = asyncio.ensure_future(run_with_timeout(hanging, timeout=5.0))
        await started.wait()
        waiter.cancel()

        with pytest.raises(asyncio.CancelledError):
            await waiter

        await asyncio.wait_for(cancelled.wait(), timeout=1.0)
