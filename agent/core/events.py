"""Stream events produced by an agent session.

The renderer only understands four kinds of event. This module defines them
and converts Claude Agent SDK messages into them, in stream order.
"""
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from claude_agent_sdk.types import (
    AssistantMessage,
    Message,
    ResultMessage,
    StreamEvent as SDKStreamEvent,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)


class EventType(StrEnum):
    """Discriminator for stream events."""
    ASSISTANT_DELTA = "assistant_delta"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    RESULT = "result"


@dataclass(frozen=True)
class AssistantDelta:
    """A chunk of assistant text."""
    text: str
    type: EventType = field(default=EventType.ASSISTANT_DELTA, init=False)


@dataclass(frozen=True)
class ToolCallStart:
    """The agent started a tool invocation; the current turn ends here."""
    tool_use_id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    type: EventType = field(default=EventType.TOOL_CALL, init=False)


@dataclass(frozen=True)
class ToolResult:
    """A tool invocation finished."""
    tool_use_id: str
    content: str = ""
    is_error: bool = False
    type: EventType = field(default=EventType.TOOL_RESULT, init=False)


@dataclass(frozen=True)
class TerminalResult:
    """The agent finished responding. Always the last event of a stream."""
    session_id: str | None = None
    is_error: bool = False
    num_turns: int = 0
    total_cost_usd: float = 0.0
    type: EventType = field(default=EventType.RESULT, init=False)


StreamEvent = AssistantDelta | ToolCallStart | ToolResult | TerminalResult


def _stringify_content(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "\n".join(parts)
    return content if isinstance(content, str) else str(content)


def session_id_from_message(msg: Message) -> str | None:
    """Extract the session ID an SDK message reveals, if any.

    The ID arrives on the ``init`` system message and again on the result.
    """
    if isinstance(msg, SystemMessage):
        if msg.subtype == "init" and getattr(msg, "data", None):
            return msg.data.get("session_id")
        return None
    if isinstance(msg, ResultMessage):
        return getattr(msg, "session_id", None)
    return None


def convert_sdk_message(msg: Message, partial_text: bool = True) -> list[StreamEvent]:
    """Convert one SDK message into zero or more stream events.

    Args:
        msg: Message yielded by ``ClaudeSDKClient.receive_response()``.
        partial_text: Whether text arrives as partial ``StreamEvent`` deltas.
            When True, ``TextBlock`` content of complete assistant messages is
            ignored so text is not rendered twice.

    Returns:
        Events in the order their blocks appear in the message.
    """
    if isinstance(msg, SDKStreamEvent):
        delta = msg.event.get("delta", {}) if isinstance(msg.event, dict) else {}
        if delta.get("type") == "text_delta" and delta.get("text"):
            return [AssistantDelta(text=delta["text"])]
        return []

    if isinstance(msg, AssistantMessage):
        events: list[StreamEvent] = []
        for block in msg.content:
            if isinstance(block, TextBlock):
                if not partial_text and block.text:
                    events.append(AssistantDelta(text=block.text))
            elif isinstance(block, ToolUseBlock):
                events.append(ToolCallStart(
                    tool_use_id=block.id,
                    name=block.name,
                    input=block.input if isinstance(block.input, dict) else {},
                ))
        return events

    if isinstance(msg, UserMessage):
        if isinstance(msg.content, str):
            return []
        return [
            ToolResult(
                tool_use_id=block.tool_use_id,
                content=_stringify_content(block.content),
                is_error=bool(getattr(block, "is_error", False)),
            )
            for block in msg.content
            if isinstance(block, ToolResultBlock)
        ]

    if isinstance(msg, ResultMessage):
        return [TerminalResult(
            session_id=getattr(msg, "session_id", None),
            is_error=bool(getattr(msg, "is_error", False)),
            num_turns=getattr(msg, "num_turns", 0) or 0,
            total_cost_usd=getattr(msg, "total_cost_usd", None) or 0.0,
        )]

    return []
