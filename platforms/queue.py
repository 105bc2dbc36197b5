"""Single-consumer FIFO for inbound messages.

Adapters enqueue from their own callbacks at any time; one drain loop hands
entries to the handler strictly one at a time, in arrival order. The loop
starts on demand and exits when the queue is empty.

A failing entry is logged and skipped; it never stops the loop or affects
the entries behind it.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from platforms.base import ChannelAdapter, InboundMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueEntry:
    """An inbound message and the adapter it arrived on."""

    message: InboundMessage
    adapter: ChannelAdapter


EntryHandler = Callable[[QueueEntry], Awaitable[None]]


class MessageQueue:
    """FIFO with an on-demand, single drain loop."""

    def __init__(self) -> None:
        self._entries: deque[QueueEntry] = deque()
        self._draining = False
        self._task: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._processed = 0
        self._failed = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def enqueue(self, entry: QueueEntry) -> None:
        """Append ``entry`` to the tail. Safe to call while draining."""
        self._entries.append(entry)
        self._idle.clear()
        logger.debug(f"Enqueued message from {entry.message.channel}:{entry.message.chat_id} ({len(self._entries)} pending)")

    def start(self, handler: EntryHandler) -> None:
        """Start the drain loop unless one is already running."""
        if self._draining or not self._entries:
            return
        self._draining = True
        self._task = asyncio.get_running_loop().create_task(self._drain(handler))

    async def _drain(self, handler: EntryHandler) -> None:
        try:
            while self._entries:
                entry = self._entries.popleft()
                try:
                    await handler(entry)
                    self._processed += 1
                except Exception:
                    self._failed += 1
                    logger.exception(
                        f"Error processing message from {entry.message.channel}:{entry.message.chat_id}"
                    )
        finally:
            self._draining = False
            self._task = None
            if not self._entries:
                self._idle.set()

    async def join(self) -> None:
        """Wait until every enqueued entry has been processed."""
        await self._idle.wait()

    async def cancel(self) -> None:
        """Stop the drain loop after cancelling the entry in progress. Pending entries are kept."""
        task = self._task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def get_stats(self) -> dict:
        return {
            "pending": len(self._entries),
            "draining": self._draining,
            "processed": self._processed,
            "failed": self._failed,
        }
