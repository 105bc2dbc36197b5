"""Channel adapter registry.

Builds the adapters enabled in settings. A channel whose configuration is
incomplete is skipped with a warning instead of stopping the others.
"""

import logging
from dataclasses import dataclass

from core.settings import Settings
from platforms.base import ChannelAdapter, ChannelError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelInfo:
    id: str
    name: str
    enabled: bool
    configured: bool


def list_channels(settings: Settings) -> list[ChannelInfo]:
    """Describe every known channel and whether it is enabled and configured."""
    return [
        ChannelInfo(
            id="telegram",
            name="Telegram",
            enabled=settings.telegram.enabled,
            configured=bool(settings.telegram.bot_token),
        ),
    ]


def build_adapters(settings: Settings) -> list[ChannelAdapter]:
    """Instantiate the adapters enabled in settings."""
    adapters: list[ChannelAdapter] = []

    if settings.telegram.enabled:
        try:
            from platforms.adapters.telegram import TelegramAdapter

            adapters.append(TelegramAdapter(settings.telegram))
            logger.info("Telegram adapter registered")
        except ChannelError as e:
            logger.warning(f"Failed to initialize Telegram adapter: {e}")

    return adapters
