"""Base channel adapter abstraction.

Defines the interface every chat transport implements, plus the shared data
types for normalized inbound and outbound messages.

Inbound flow: the adapter turns a platform event into an ``InboundMessage``
and hands it to the ``on_message`` callback the orchestrator installed.
Slash commands go to ``on_command`` instead.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class ChannelError(Exception):
    """A transport failed to deliver, edit, or receive a message."""


@dataclass(frozen=True)
class InboundMessage:
    """Platform-agnostic inbound message. Immutable once created."""

    channel: str
    chat_id: str
    user_id: str
    text: str
    thread_id: str | None = None
    message_id: str | None = None
    user_name: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class OutboundMessage:
    """Platform-agnostic outbound message."""

    chat_id: str
    text: str
    thread_id: str | None = None


@dataclass(frozen=True)
class SendResult:
    """Result of a send; ``message_id`` identifies the sent bubble for later edits."""

    message_id: str


MessageCallback = Callable[[InboundMessage], Awaitable[None]]
CommandCallback = Callable[[str], Awaitable[str | None]]


def split_point(text: str, max_length: int) -> tuple[int, int]:
    """Find where to cut ``text`` so the head fits in ``max_length``.

    Returns ``(end, resume)``: the head is ``text[:end]`` and the tail starts
    at ``text[resume:]``. A paragraph break is preferred, then a line break,
    then a space, as long as the head keeps more than half the limit;
    otherwise the cut is hard.
    """
    if len(text) <= max_length:
        return len(text), len(text)
    for separator in ("\n\n", "\n", " "):
        pos = text.rfind(separator, max_length // 2 + 1, max_length)
        if pos != -1:
            return pos, pos + len(separator)
    return max_length, max_length


def split_message(text: str, max_length: int) -> list[str]:
    """Split ``text`` into chunks of at most ``max_length`` characters."""
    chunks: list[str] = []
    while len(text) > max_length:
        end, resume = split_point(text, max_length)
        chunks.append(text[:end])
        text = text[resume:]
    chunks.append(text)
    return chunks


class ChannelAdapter(ABC):
    """Abstract base for chat transport adapters.

    ``supports_editing`` is an explicit capability flag: adapters whose
    platform cannot edit sent messages set it to False, and the renderer then
    delivers each turn once instead of streaming edits.

    ``max_message_length`` is the platform limit for one message, or None
    when there is none. Text past the limit continues in a new message.
    """

    id: str
    name: str
    supports_editing: bool = True
    max_message_length: int | None = None

    def __init__(self) -> None:
        self.on_message: MessageCallback | None = None
        self.on_command: CommandCallback | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    async def start(self) -> None:
        """Connect and start receiving messages."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop receiving and release resources."""

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    @abstractmethod
    async def send_message(self, message: OutboundMessage) -> SendResult:
        """Send a new message. Raises ``ChannelError`` on failure."""

    @abstractmethod
    async def edit_message(self, chat_id: str, message_id: str, text: str) -> None:
        """Replace the text of a previously sent message. Raises ``ChannelError`` on failure."""

    async def send_typing_indicator(self, chat_id: str) -> None:
        """Show a typing indicator. Default is a no-op."""

    # ------------------------------------------------------------------
    # Inbound helpers
    # ------------------------------------------------------------------

    async def dispatch_message(self, msg: InboundMessage) -> None:
        """Forward a normalized inbound message to the registered callback."""
        if self.on_message is None:
            logger.warning(f"[{self.id}] No message callback set, dropping message")
            return
        await self.on_message(msg)

    async def dispatch_command(self, command: str) -> str | None:
        """Forward a command (without the leading slash) to the registered callback."""
        if self.on_command is None:
            return None
        return await self.on_command(command)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id}>"
