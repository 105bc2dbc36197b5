"""Agent sessions over the Claude Agent SDK.

An ``AgentSession`` is one open connection to a remote conversational
context. It is either fresh (no identity until the SDK assigns a session ID)
or resumed (bound to a known session ID). Sessions are not safe for
concurrent use; callers serialize access.

The runtime that creates sessions is behind the ``AgentRuntime`` protocol so
the orchestrator can be driven by fakes in tests.
"""
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from claude_agent_sdk import ClaudeSDKClient

from agent.core.events import StreamEvent, TerminalResult, convert_sdk_message, session_id_from_message
from agent.core.memory import MemoryBlock
from agent.core.options import INCLUDE_PARTIAL_MESSAGES, SessionOptions, create_agent_sdk_options

logger = logging.getLogger(__name__)


class Session(Protocol):
    """What the orchestrator needs from a session."""

    @property
    def identity(self) -> str | None: ...

    async def initialize(self) -> dict[str, Any]: ...

    async def send(self, text: str) -> None: ...

    def stream(self) -> AsyncIterator[StreamEvent]: ...

    async def close(self) -> None: ...


class AgentRuntime(Protocol):
    """Factory for sessions."""

    def create_session(self, options: SessionOptions) -> Session: ...

    def resume_session(self, identity: str, options: SessionOptions) -> Session: ...


class AgentSession:
    """A Claude Agent SDK session.

    Lifecycle: ``initialize()`` connects, ``send()`` submits one user
    message, ``stream()`` yields the reply as stream events up to and
    including the terminal result, ``close()`` disconnects.
    """

    def __init__(self, options: SessionOptions, resume_session_id: str | None = None):
        self._options = options
        self._identity = resume_session_id
        self._client = ClaudeSDKClient(create_agent_sdk_options(options, resume_session_id))
        self._connected = False
        self._closed = False

    @property
    def identity(self) -> str | None:
        """Remote session ID; ``None`` for a fresh session until the SDK assigns one."""
        return self._identity

    async def initialize(self) -> dict[str, Any]:
        """Connect to the agent runtime."""
        await self._client.connect()
        self._connected = True
        return {
            "session_id": self._identity,
            "resumed": self._identity is not None,
            "model": self._options.model,
            "cwd": str(self._options.cwd),
        }

    async def send(self, text: str) -> None:
        """Submit one user message."""
        if not self._connected:
            raise RuntimeError("Session is not initialized")
        await self._client.query(text)

    async def stream(self) -> AsyncIterator[StreamEvent]:
        """Yield the reply to the last ``send()`` as stream events.

        The sequence is finite and ends with a ``TerminalResult``. It cannot
        be restarted.
        """
        async for sdk_msg in self._client.receive_response():
            if session_id := session_id_from_message(sdk_msg):
                if session_id != self._identity:
                    logger.debug(f"Session identity assigned: {session_id}")
                self._identity = session_id

            for event in convert_sdk_message(sdk_msg, partial_text=INCLUDE_PARTIAL_MESSAGES):
                yield event
                if isinstance(event, TerminalResult):
                    return

    async def close(self) -> None:
        """Disconnect. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._client.disconnect()


class ClaudeAgentRuntime:
    """``AgentRuntime`` backed by ``ClaudeSDKClient``.

    The SDK rebuilds the system prompt and model from the client options on
    every connection, so a resumed session gets the configured ``model`` and
    ``memory`` again unless its options already carry them.
    """

    def __init__(self, model: str | None = None, memory: list[MemoryBlock] | None = None):
        self._model = model
        self._memory = list(memory or [])

    def create_session(self, options: SessionOptions) -> AgentSession:
        logger.info(f"Creating new agent session (model={options.model})")
        return AgentSession(options)

    def resume_session(self, identity: str, options: SessionOptions) -> AgentSession:
        logger.info(f"Resuming agent session {identity}")
        options = options.for_creation(options.model or self._model, options.memory or self._memory)
        return AgentSession(options, resume_session_id=identity)
