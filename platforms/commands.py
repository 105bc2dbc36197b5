"""Text command protocol exposed to adapters.

Adapters forward ``/status`` and ``/heartbeat`` (without the slash). A
command returns the reply text, or ``None`` when it is not recognized; the
adapter then answers with ``usage_text()``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from platforms.formatter import HEARTBEAT_NOT_CONFIGURED, HEARTBEAT_TRIGGERED, format_status
from platforms.store import IdentityStore

logger = logging.getLogger(__name__)

COMMANDS = {
    "status": "Show the agent identity and active channels",
    "heartbeat": "Run the heartbeat now",
}

HeartbeatTrigger = Callable[[], Awaitable[None]]


def usage_text() -> str:
    """Reply for an unknown command."""
    listing = "\n".join(f"/{name} - {description}" for name, description in COMMANDS.items())
    return f"Unknown command. Available commands:\n{listing}"


class CommandRouter:
    """Answers text commands from the store and the orchestrator state."""

    def __init__(self, store: IdentityStore, channel_ids: Callable[[], list[str]]) -> None:
        self._store = store
        self._channel_ids = channel_ids
        self.on_trigger_heartbeat: HeartbeatTrigger | None = None
        self._background: set[asyncio.Task] = set()

    async def handle(self, command: str) -> str | None:
        parts = command.strip().lstrip("/").split(maxsplit=1)
        name = parts[0].lower() if parts else ""
        logger.info(f"[Command] Received: /{name}")

        if name == "status":
            info = self._store.get_info()
            return format_status(info.agent_id, info.created_at, info.last_used_at, self._channel_ids())

        if name == "heartbeat":
            if self.on_trigger_heartbeat is None:
                logger.info("[Command] /heartbeat - no trigger callback configured")
                return HEARTBEAT_NOT_CONFIGURED
            logger.info("[Command] /heartbeat - triggering heartbeat")
            task = asyncio.create_task(self._run_heartbeat(self.on_trigger_heartbeat))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return HEARTBEAT_TRIGGERED

        return None

    async def _run_heartbeat(self, trigger: HeartbeatTrigger) -> None:
        try:
            await trigger()
        except Exception:
            logger.exception("[Heartbeat] Manual trigger failed")
