"""Streaming response renderer.

Turns the stream events of one agent reply into adapter calls:

- Assistant text accumulates in the current bubble. On adapters that can
  edit, the bubble is sent once and then edited in place, at most every
  ``EDIT_THROTTLE_S`` seconds. A bubble that reaches the adapter's message
  limit is closed and the text continues in a new one.
- A tool invocation closes the current bubble (flushing its text) so the
  next assistant turn starts a new one. Tool activity itself is not shown.
- The terminal result hands control to ``on_result`` and ends the loop.
- A typing indicator is re-sent every ``TYPING_INTERVAL_S`` seconds while
  the stream is being consumed.

Delivery failures while streaming are logged and swallowed: the agent work
is far more expensive to redo than a missed UI update.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from agent.core.events import AssistantDelta, StreamEvent, TerminalResult, ToolCallStart
from platforms.base import ChannelAdapter, OutboundMessage, split_point

logger = logging.getLogger(__name__)

EDIT_THROTTLE_S = 0.5
TYPING_INTERVAL_S = 4.0
NO_RESPONSE_TEXT = "(No response from agent)"

ResultCallback = Callable[[TerminalResult], Awaitable[None]]


@dataclass
class DeliveryState:
    """Mutable delivery state for one processing cycle.

    ``delivered_text`` is the text the open bubble is known to show, so a
    final flush never re-sends what the user already has.
    """

    text: str = ""
    message_id: str | None = None
    last_edit: float = 0.0
    sent_any: bool = False
    delivered_text: str = ""

    def start_turn(self, now: float) -> None:
        """Forget the current bubble; the next text opens a new one."""
        self.text = ""
        self.message_id = None
        self.delivered_text = ""
        self.last_edit = now

    @property
    def has_undelivered_text(self) -> bool:
        return bool(self.text) and self.text != self.delivered_text


@asynccontextmanager
async def typing_heartbeat(adapter: ChannelAdapter, chat_id: str, interval_s: float = TYPING_INTERVAL_S):
    """Re-send the typing indicator every ``interval_s`` seconds while the block runs."""

    async def _tick() -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                await adapter.send_typing_indicator(chat_id)
            except Exception as e:
                logger.debug(f"Failed to send typing indicator: {e}")

    task = asyncio.create_task(_tick())
    try:
        yield
    finally:
        task.cancel()


class StreamRenderer:
    """Renders one agent reply onto one chat."""

    def __init__(
        self,
        adapter: ChannelAdapter,
        chat_id: str,
        thread_id: str | None = None,
        on_result: ResultCallback | None = None,
        edit_throttle_s: float = EDIT_THROTTLE_S,
        typing_interval_s: float = TYPING_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapter = adapter
        self._chat_id = chat_id
        self._thread_id = thread_id
        self._on_result = on_result
        self._edit_throttle_s = edit_throttle_s
        self._typing_interval_s = typing_interval_s
        self._clock = clock
        self.state = DeliveryState(last_edit=clock())

    async def render(self, events: AsyncIterator[StreamEvent]) -> DeliveryState:
        """Consume ``events`` to the terminal result and deliver the reply.

        Raises:
            Exception: Whatever the event stream or ``on_result`` raises, and
                a failed last-resort send of the final text or placeholder.
        """
        async with typing_heartbeat(self._adapter, self._chat_id, self._typing_interval_s):
            try:
                async for event in events:
                    if isinstance(event, AssistantDelta):
                        await self._on_delta(event)
                    elif isinstance(event, ToolCallStart):
                        await self._on_tool_call(event)
                    elif isinstance(event, TerminalResult):
                        if self._on_result is not None:
                            await self._on_result(event)
                        break
            finally:
                aclose = getattr(events, "aclose", None)
                if aclose is not None:
                    await aclose()

        await self._finish()
        return self.state

    async def _on_delta(self, event: AssistantDelta) -> None:
        self.state.text += event.text
        if not self._adapter.supports_editing:
            return
        now = self._clock()
        if now - self.state.last_edit >= self._edit_throttle_s and self.state.text:
            await self._flush()
            self.state.last_edit = self._clock()

    async def _on_tool_call(self, event: ToolCallStart) -> None:
        if not self.state.text:
            return
        logger.debug(f"Tool call {event.name}: closing current bubble")
        if not self.state.has_undelivered_text or await self._flush():
            self.state.sent_any = True
        self.state.start_turn(self._clock())

    async def _flush(self) -> bool:
        """Show the current text: edit the open bubble, or send a new one.

        Text past the adapter's message limit is moved on to new bubbles;
        the last one stays open for later edits.

        Returns:
            True if the adapter accepted the text.
        """
        try:
            await self._roll_over()
            text = self.state.text
            if self.state.message_id:
                await self._adapter.edit_message(self._chat_id, self.state.message_id, text)
            else:
                result = await self._adapter.send_message(
                    OutboundMessage(chat_id=self._chat_id, text=text, thread_id=self._thread_id)
                )
                self.state.message_id = result.message_id
        except Exception as e:
            logger.warning(f"Failed to deliver streamed text to {self._chat_id}: {e}")
            return False
        self.state.delivered_text = text
        return True

    async def _roll_over(self) -> None:
        """Close bubbles that are full until the rest fits in one message."""
        limit = self._adapter.max_message_length
        state = self.state
        while limit and len(state.text) > limit:
            end, resume = split_point(state.text, limit)
            head = state.text[:end]
            if state.message_id:
                await self._adapter.edit_message(self._chat_id, state.message_id, head)
            else:
                await self._send(head)
            logger.debug(f"Bubble full at {len(head)} chars, continuing in a new message")
            state.sent_any = True
            state.text = state.text[resume:]
            state.message_id = None
            state.delivered_text = ""

    async def _finish(self) -> None:
        state = self.state
        if state.has_undelivered_text:
            logger.debug(f"Sending final response (message_id={state.message_id})")
            if not await self._flush():
                if state.message_id is not None:
                    # The user already sees part of this turn in the open bubble.
                    return
                await self._send(state.text)
                state.delivered_text = state.text
            state.sent_any = True
        elif state.text:
            state.sent_any = True
        elif not state.sent_any:
            logger.info(f"No response from agent for {self._chat_id}, sending placeholder")
            await self._send(NO_RESPONSE_TEXT)

    async def _send(self, text: str) -> None:
        await self._adapter.send_message(
            OutboundMessage(chat_id=self._chat_id, text=text, thread_id=self._thread_id)
        )
