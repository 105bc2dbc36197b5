# core/settings.py
"""Centralized settings module for Agent Relay.

This module provides a single source of truth for all configuration settings.
Settings are read from environment variables (and a ``.env`` file loaded by
the CLI), grouped by concern with an env prefix per group.

Usage:
    from core.settings import get_settings

    settings = get_settings()
    print(settings.agent.model)
    print(settings.telegram.enabled)
    print(settings.heartbeat.interval_min)
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_PROMPT = (
    "This is a scheduled heartbeat. Review your memory and pending tasks. "
    "If something needs the user's attention, say so briefly; otherwise reply with nothing."
)


class AgentSettings(BaseSettings):
    """Agent session configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AGENT_")

    name: str = Field(
        default="RelayBot",
        description="Display name assigned to the agent on first creation"
    )
    model: str = Field(
        default="claude-sonnet-4-5",
        description="Model identifier, only sent when a new session is created"
    )
    working_dir: Path = Field(
        default=Path("workspace"),
        description="Working directory the agent operates in"
    )
    profile_path: Path = Field(
        default=Path("agent.yaml"),
        description="Optional YAML agent profile (tools, prompt, memory)"
    )
    init_timeout_s: float = Field(
        default=30.0,
        description="Deadline for session initialization and the initial send"
    )
    server_url: str = Field(
        default="https://api.anthropic.com",
        validation_alias=AliasChoices("AGENT_SERVER_URL", "ANTHROPIC_BASE_URL"),
        description="Server the agent identity belongs to"
    )


class StoreSettings(BaseSettings):
    """Identity store configuration settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    path: Path = Field(
        default=Path("relay-agent.json"),
        description="JSON file holding the agent identity record"
    )


class TelegramSettings(BaseSettings):
    """Telegram channel configuration settings."""

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_")

    enabled: bool = Field(
        default=False,
        description="Register the Telegram adapter at startup"
    )
    bot_token: str = Field(
        default="",
        description="Telegram Bot API token"
    )
    dm_policy: Literal["open", "allowlist"] = Field(
        default="open",
        description="Who may talk to the bot: everyone, or only allowed_users"
    )
    allowed_users: str = Field(
        default="",
        description="Comma-separated Telegram user IDs or usernames"
    )
    poll_timeout_s: int = Field(
        default=30,
        description="Long-polling timeout for getUpdates"
    )

    @property
    def allowed_user_ids(self) -> set[str]:
        """Allowed users as a normalized set (usernames without '@')."""
        return {
            entry.strip().lstrip("@")
            for entry in self.allowed_users.split(",")
            if entry.strip()
        }


class HeartbeatSettings(BaseSettings):
    """Heartbeat service configuration settings."""

    model_config = SettingsConfigDict(env_prefix="HEARTBEAT_")

    enabled: bool = Field(
        default=False,
        description="Run the periodic heartbeat"
    )
    interval_min: float = Field(
        default=60.0,
        description="Minutes between heartbeats"
    )
    target: str | None = Field(
        default=None,
        description="Delivery target as 'channel:chat_id' (falls back to last message target)"
    )
    prompt: str = Field(
        default=DEFAULT_HEARTBEAT_PROMPT,
        description="Prompt sent to the agent on each heartbeat"
    )
    silent: bool = Field(
        default=True,
        description="Do not deliver the agent's heartbeat reply to any channel"
    )


class Settings(BaseSettings):
    """Root settings class containing all configuration sections."""

    model_config = SettingsConfigDict(env_prefix="RELAY_", extra="ignore")

    log_level: str = Field(
        default="INFO",
        description="Root logging level"
    )
    agent: AgentSettings = Field(default_factory=AgentSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    heartbeat: HeartbeatSettings = Field(default_factory=HeartbeatSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are cached for performance. The cache is populated on first call
    and reused for subsequent calls.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
