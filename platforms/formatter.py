"""Format messages for the agent and for chat display.

Inbound user text is wrapped in a one-line metadata header so the agent
knows which channel, chat and person a message came from. The command
replies (status, heartbeat) are formatted here too.
"""

from platforms.base import InboundMessage

# Max chars of user text echoed into logs
LOG_PREVIEW_LENGTH = 200

_CHANNEL_DISPLAY_NAMES = {
    "telegram": "Telegram",
    "slack": "Slack",
    "discord": "Discord",
    "whatsapp": "WhatsApp",
    "signal": "Signal",
}


def channel_display_name(channel: str) -> str:
    return _CHANNEL_DISPLAY_NAMES.get(channel, channel.capitalize())


def truncate(text: str, max_len: int = LOG_PREVIEW_LENGTH) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "…"


def format_message_envelope(msg: InboundMessage) -> str:
    """Wrap a user message in its metadata header.

    Example:
        [Telegram · chat 42 · from Ada (id 7) · 2026-10-18 09:30 UTC]
        what's on my calendar today?
    """
    sender = f"id {msg.user_id}"
    if msg.user_name:
        sender = f"{msg.user_name} ({sender})"

    parts = [channel_display_name(msg.channel), f"chat {msg.chat_id}"]
    if msg.thread_id:
        parts.append(f"thread {msg.thread_id}")
    parts.append(f"from {sender}")
    parts.append(msg.timestamp.strftime("%Y-%m-%d %H:%M %Z").strip())

    return f"[{' · '.join(parts)}]\n{msg.text}"


def format_error(error: BaseException) -> str:
    """User-facing text for a failed processing cycle."""
    detail = str(error) or type(error).__name__
    return f"Error: {detail}"


def format_status(
    agent_id: str | None,
    created_at: str | None,
    last_used_at: str | None,
    channels: list[str],
) -> str:
    """Reply to the ``status`` command."""
    lines = [
        "*Status*",
        f"Agent ID: `{agent_id or '(none)'}`",
        f"Created: {created_at or 'N/A'}",
        f"Last used: {last_used_at or 'N/A'}",
        f"Channels: {', '.join(channels) if channels else '(none)'}",
    ]
    return "\n".join(lines)


HEARTBEAT_TRIGGERED = "⏰ Heartbeat triggered (silent mode - check server logs)"
HEARTBEAT_NOT_CONFIGURED = "⚠️ Heartbeat service not configured"
