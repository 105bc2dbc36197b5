"""Relay orchestrator.

One agent, one conversation: every registered channel feeds the same agent
session. Inbound messages are queued and processed one at a time:

1. Record the message's origin as the last delivery target
2. Create a new agent session, or resume the stored one
3. Initialize the session and send the message (both under a deadline)
4. Stream the reply back to the originating adapter
5. Close the session, whatever happened

A failure aborts only the current message; the user gets an error reply and
the queue moves on. The session lock also covers ``send_to_agent`` so
heartbeats never overlap a queued message.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from pathlib import Path

from agent.core.events import AssistantDelta, TerminalResult, ToolCallStart, ToolResult
from agent.core.memory import load_memory_blocks
from agent.core.profile import AgentProfile, load_agent_profile
from agent.core.session import AgentRuntime, ClaudeAgentRuntime, Session
from core.settings import Settings
from core.timeouts import with_timeout
from platforms.base import ChannelAdapter, InboundMessage, OutboundMessage
from platforms.commands import CommandRouter, HeartbeatTrigger
from platforms.formatter import format_error, format_message_envelope, truncate
from platforms.lifecycle import SessionLifecycle
from platforms.queue import MessageQueue, QueueEntry
from platforms.renderer import StreamRenderer
from platforms.store import IdentityStore, MessageTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerContext:
    """Why a message was sent to the agent outside the normal chat flow."""

    type: str  # "heartbeat", "cron", "webhook"
    output_mode: str = "silent"


@dataclass(frozen=True)
class BotStatus:
    agent_id: str | None
    channels: list[str]


class RelayBot:
    """Bridges registered channel adapters to a single agent session."""

    def __init__(
        self,
        settings: Settings,
        store: IdentityStore | None = None,
        runtime: AgentRuntime | None = None,
        queue: MessageQueue | None = None,
        profile: AgentProfile | None = None,
        skills_dir: Path | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._store = store or IdentityStore(settings.store.path)
        profile = profile or load_agent_profile(settings.agent.profile_path)
        self._runtime = runtime or ClaudeAgentRuntime(
            model=settings.agent.model,
            memory=load_memory_blocks(settings.agent.name, profile.memory),
        )
        self._queue = queue or MessageQueue()
        self._clock = clock
        self._channels: dict[str, ChannelAdapter] = {}
        self._session_lock = asyncio.Lock()

        settings.agent.working_dir.mkdir(parents=True, exist_ok=True)

        self._lifecycle = SessionLifecycle(
            store=self._store,
            runtime=self._runtime,
            agent_settings=settings.agent,
            profile=profile,
            skills_dir=skills_dir,
        )
        self._commands = CommandRouter(self._store, lambda: list(self._channels))

        logger.info(f"Relay initialized. Agent ID: {self._store.agent_id or '(new)'}")

    @property
    def store(self) -> IdentityStore:
        return self._store

    @property
    def on_trigger_heartbeat(self) -> HeartbeatTrigger | None:
        return self._commands.on_trigger_heartbeat

    @on_trigger_heartbeat.setter
    def on_trigger_heartbeat(self, trigger: HeartbeatTrigger | None) -> None:
        self._commands.on_trigger_heartbeat = trigger

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def register_channel(self, adapter: ChannelAdapter) -> None:
        """Register an adapter and install the inbound callbacks."""

        async def _on_message(msg: InboundMessage) -> None:
            await self.handle_message(msg, adapter)

        adapter.on_message = _on_message
        adapter.on_command = self.handle_command
        self._channels[adapter.id] = adapter
        logger.info(f"Registered channel: {adapter.name}")

    def get_channel(self, channel_id: str) -> ChannelAdapter | None:
        return self._channels.get(channel_id)

    async def start(self) -> None:
        """Start all registered channels. One failing channel does not stop the others."""

        async def _start(channel_id: str, adapter: ChannelAdapter) -> None:
            try:
                logger.info(f"Starting channel: {adapter.name}...")
                await adapter.start()
                logger.info(f"Started channel: {adapter.name}")
            except Exception:
                logger.exception(f"Failed to start channel {channel_id}")

        await asyncio.gather(*(_start(cid, a) for cid, a in self._channels.items()))

    async def stop(self) -> None:
        """Stop all channels."""
        for adapter in self._channels.values():
            try:
                await adapter.stop()
            except Exception:
                logger.exception(f"Failed to stop channel {adapter.id}")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def handle_command(self, command: str) -> str | None:
        return await self._commands.handle(command)

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    async def handle_message(self, msg: InboundMessage, adapter: ChannelAdapter) -> None:
        """Queue an inbound message; it is processed after all earlier ones."""
        logger.info(f"[{msg.channel}] Message from {msg.user_id}: {truncate(msg.text)}")
        self._queue.enqueue(QueueEntry(message=msg, adapter=adapter))
        self._queue.start(self._process_entry)

    async def wait_idle(self) -> None:
        """Wait until the queue has been drained."""
        await self._queue.join()

    async def _process_entry(self, entry: QueueEntry) -> None:
        await self.process_message(entry.message, entry.adapter)

    async def process_message(self, msg: InboundMessage, adapter: ChannelAdapter) -> None:
        """Run one full processing cycle for ``msg``.

        Raises:
            Exception: Only if the error reply itself cannot be delivered.
        """
        self._store.last_message_target = MessageTarget(
            channel=msg.channel,
            chat_id=msg.chat_id,
            message_id=msg.message_id,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )

        try:
            await adapter.send_typing_indicator(msg.chat_id)
        except Exception as e:
            logger.debug(f"Failed to send typing indicator: {e}")

        timeout_s = self._settings.agent.init_timeout_s
        async with self._session_lock:
            session: Session | None = None
            try:
                session = self._lifecycle.open_session()

                init_info = await with_timeout(session.initialize(), "Session initialize", timeout_s)
                logger.info(f"Session initialized: {init_info}")

                envelope = format_message_envelope(msg)
                logger.debug(f"Formatted message: {truncate(envelope)}")
                await with_timeout(session.send(envelope), "Session send", timeout_s)

                renderer = StreamRenderer(
                    adapter,
                    msg.chat_id,
                    thread_id=msg.thread_id,
                    on_result=partial(self._handle_result, session),
                    clock=self._clock,
                )
                state = await renderer.render(session.stream())
                logger.info(f"Stream complete for {msg.channel}:{msg.chat_id} (final length {len(state.text)})")
                self._store.touch()

            except Exception as e:
                logger.error(f"Error processing message: {e}", exc_info=True)
                await adapter.send_message(
                    OutboundMessage(chat_id=msg.chat_id, text=format_error(e), thread_id=msg.thread_id)
                )
            finally:
                if session is not None:
                    await self._close_session(session)

    async def _handle_result(self, session: Session, result: TerminalResult) -> None:
        if result.is_error:
            logger.warning(f"Agent reported an error result after {result.num_turns} turn(s)")
        self._lifecycle.persist_identity(session)

    async def _close_session(self, session: Session) -> None:
        logger.debug("Closing session")
        try:
            await session.close()
        except Exception as e:
            logger.error(f"Error closing agent session: {e}")

    # ------------------------------------------------------------------
    # Out-of-band
    # ------------------------------------------------------------------

    async def send_to_agent(self, text: str, context: TriggerContext | None = None) -> str:
        """Send a message to the agent outside the chat flow (heartbeats, cron, webhooks).

        The reply is returned, not delivered. Assistant turns separated by
        tool activity are joined with a blank line.
        """
        label = f"{context.type}:{context.output_mode}" if context else "direct"
        logger.info(f"[{label}] Sending to agent: {truncate(text)}")

        timeout_s = self._settings.agent.init_timeout_s
        async with self._session_lock:
            session = self._lifecycle.open_session()
            try:
                await with_timeout(session.initialize(), "Session initialize", timeout_s)
                await with_timeout(session.send(text), "Session send", timeout_s)

                response = ""
                had_tool_call = False
                async for event in session.stream():
                    if isinstance(event, (ToolCallStart, ToolResult)):
                        had_tool_call = True
                    elif isinstance(event, AssistantDelta):
                        if had_tool_call and response:
                            response += "\n\n"
                        had_tool_call = False
                        response += event.text
                    elif isinstance(event, TerminalResult):
                        self._lifecycle.persist_identity(session)
                        break

                return response
            finally:
                await self._close_session(session)

    async def deliver_to_channel(self, channel_id: str, chat_id: str, text: str) -> bool:
        """Send ``text`` directly through a channel, bypassing the queue.

        Returns:
            False if no channel with that ID is registered.
        """
        adapter = self._channels.get(channel_id)
        if adapter is None:
            logger.error(f"Channel not found: {channel_id}")
            return False
        await adapter.send_message(OutboundMessage(chat_id=chat_id, text=text))
        return True

    def get_status(self) -> BotStatus:
        return BotStatus(agent_id=self._store.agent_id, channels=list(self._channels))

    def reset(self) -> None:
        """Forget the agent identity; the next message creates a new agent."""
        self._store.reset()
        logger.info("Agent reset")

    def get_last_message_target(self) -> MessageTarget | None:
        return self._store.last_message_target
