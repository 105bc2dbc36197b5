"""Chat channel integration: adapters, message queue, streaming delivery and the relay orchestrator."""

from platforms.base import (
    ChannelAdapter,
    ChannelError,
    InboundMessage,
    OutboundMessage,
    SendResult,
)
from platforms.bot import BotStatus, RelayBot, TriggerContext
from platforms.heartbeat import HeartbeatService
from platforms.queue import MessageQueue, QueueEntry
from platforms.renderer import StreamRenderer
from platforms.store import IdentityStore, MessageTarget

__all__ = [
    "BotStatus",
    "ChannelAdapter",
    "ChannelError",
    "HeartbeatService",
    "IdentityStore",
    "InboundMessage",
    "MessageQueue",
    "MessageTarget",
    "OutboundMessage",
    "QueueEntry",
    "RelayBot",
    "SendResult",
    "StreamRenderer",
    "TriggerContext",
]
