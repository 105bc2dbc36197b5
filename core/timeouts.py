"""Deadline wrapper for session calls.

Only session initialization and the initial send are raced against a
deadline. Streaming is not, since the typing heartbeat shows progress there.
"""
import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_S = 30.0


class OperationTimeoutError(TimeoutError):
    """A labelled operation did not finish before its deadline."""

    def __init__(self, label: str, timeout_s: float) -> None:
        self.label = label
        self.timeout_s = timeout_s
        super().__init__(f"{label} timed out after {int(timeout_s * 1000)}ms")


async def with_timeout(
    operation: Awaitable[T],
    label: str,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> T:
    """Await ``operation``, failing with ``OperationTimeoutError`` past the deadline.

    The deadline is scoped to this call: it is cancelled on every exit path,
    so nothing fires after the operation completes or fails. On expiry the
    operation itself is cancelled.

    A ``TimeoutError`` raised by the operation on its own is propagated
    unchanged; only our deadline produces ``OperationTimeoutError``.
    """
    deadline = asyncio.timeout(timeout_s)
    try:
        async with deadline:
            return await operation
    except TimeoutError:
        if deadline.expired():
            logger.warning(f"{label} exceeded {timeout_s}s deadline")
            raise OperationTimeoutError(label, timeout_s) from None
        raise
