"""Tests for the labelled deadline wrapper."""
import asyncio

import pytest

from core.timeouts import OperationTimeoutError, with_timeout


class TestWithTimeout:

    @pytest.mark.asyncio
    async def test_returns_result_before_deadline(self):
        async def op():
            return 42

        assert await with_timeout(op(), "Quick op", timeout_s=1.0) == 42

    @pytest.mark.asyncio
    async def test_expiry_raises_labelled_error(self):
        with pytest.raises(OperationTimeoutError) as exc_info:
            await with_timeout(asyncio.sleep(10), "Session initialize", timeout_s=0.05)

        err = exc_info.value
        assert err.label == "Session initialize"
        assert str(err) == "Session initialize timed out after 50ms"
        assert isinstance(err, TimeoutError)

    @pytest.mark.asyncio
    async def test_expiry_cancels_operation(self):
        cancelled = asyncio.Event()

        async def op():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(OperationTimeoutError):
            await with_timeout(op(), "Slow op", timeout_s=0.05)
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_operation_error_propagates_unchanged(self):
        async def op():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await with_timeout(op(), "Failing op", timeout_s=1.0)

    @pytest.mark.asyncio
    async def test_own_timeout_error_is_not_relabelled(self):
        async def op():
            raise TimeoutError("upstream")

        with pytest.raises(TimeoutError) as exc_info:
            await with_timeout(op(), "Op", timeout_s=1.0)
        assert not isinstance(exc_info.value, OperationTimeoutError)

    @pytest.mark.asyncio
    async def test_no_timer_left_after_completion(self):
        async def op():
            return "done"

        assert await with_timeout(op(), "Op", timeout_s=0.05) == "done"
        # A leaked deadline would cancel the current task here
        await asyncio.sleep(0.1)
