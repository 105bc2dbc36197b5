"""
Heartbeat Service - periodically wakes the agent with a scheduled prompt.

Each tick sends the heartbeat prompt through ``RelayBot.send_to_agent``, so
it never overlaps a queued chat message. In silent mode (the default) the
reply only goes to the logs; otherwise it is delivered to the configured
target (``channel:chat_id``) or to wherever the last user message came from.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from core.settings import HeartbeatSettings

if TYPE_CHECKING:
    from platforms.bot import RelayBot

logger = logging.getLogger(__name__)


def parse_target(target: str) -> tuple[str, str] | None:
    """Split ``channel:chat_id``. Returns None if either part is missing."""
    channel, sep, chat_id = target.partition(":")
    if not sep or not channel or not chat_id:
        return None
    return channel, chat_id


class HeartbeatService:
    """Runs the agent heartbeat on a fixed interval."""

    def __init__(self, bot: "RelayBot", settings: HeartbeatSettings):
        self._bot = bot
        self._settings = settings
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        interval_s = self._settings.interval_min * 60
        logger.info(f"[HEARTBEAT] Scheduled every {self._settings.interval_min:g} min")
        self._task = asyncio.create_task(self._loop(interval_s))

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                await self.trigger()
            except Exception as e:
                logger.warning(f"[HEARTBEAT] Tick failed: {e}")

    async def trigger(self) -> None:
        """Run one heartbeat now."""
        from platforms.bot import TriggerContext

        output_mode = "silent" if self._settings.silent else "deliver"
        logger.info(f"[HEARTBEAT] Running heartbeat ({output_mode})")

        response = await self._bot.send_to_agent(
            self._settings.prompt,
            TriggerContext(type="heartbeat", output_mode=output_mode),
        )
        text = response.strip()

        if self._settings.silent:
            logger.info(f"[HEARTBEAT] Silent reply ({len(text)} chars)")
            return
        if not text:
            logger.debug("[HEARTBEAT] Nothing to deliver")
            return

        destination = self._resolve_destination()
        if destination is None:
            logger.warning("[HEARTBEAT] No delivery target known, reply dropped")
            return

        channel, chat_id = destination
        if await self._bot.deliver_to_channel(channel, chat_id, text):
            logger.info(f"[HEARTBEAT] Delivered reply to {channel}:{chat_id} ({len(text)} chars)")

    def _resolve_destination(self) -> tuple[str, str] | None:
        if self._settings.target:
            destination = parse_target(self._settings.target)
            if destination is None:
                logger.warning(f"[HEARTBEAT] Invalid target {self._settings.target!r}, expected 'channel:chat_id'")
            return destination

        last = self._bot.get_last_message_target()
        if last is None:
            return None
        return last.channel, last.chat_id
