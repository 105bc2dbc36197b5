"""Run command: serve all enabled channels until interrupted."""
import asyncio
import logging
import signal

from agent.display import print_error, print_info, print_success, print_warning
from core.settings import Settings
from platforms.adapters import build_adapters
from platforms.bot import RelayBot
from platforms.heartbeat import HeartbeatService

logger = logging.getLogger(__name__)


async def serve(settings: Settings) -> None:
    """Register adapters, start the heartbeat, and block until SIGINT/SIGTERM."""
    bot = RelayBot(settings)

    adapters = build_adapters(settings)
    if not adapters:
        print_warning("No channels enabled. Set TELEGRAM_ENABLED=true and TELEGRAM_BOT_TOKEN.")
    for adapter in adapters:
        bot.register_channel(adapter)

    heartbeat: HeartbeatService | None = None
    if settings.heartbeat.enabled:
        heartbeat = HeartbeatService(bot, settings.heartbeat)
        bot.on_trigger_heartbeat = heartbeat.trigger

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: rely on KeyboardInterrupt
            pass

    await bot.start()
    if heartbeat is not None:
        heartbeat.start()
    print_success(f"Relay running with {len(adapters)} channel(s). Press Ctrl+C to stop.")

    try:
        await stop_event.wait()
    finally:
        print_info("Shutting down...")
        if heartbeat is not None:
            await heartbeat.stop()
        await bot.stop()


def run_command(ctx):
    """Run the relay in the foreground."""
    settings: Settings = ctx.obj['settings']
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        print_info("Interrupted")
    except Exception as e:
        logger.exception("Relay crashed")
        print_error(f"Relay stopped: {e}")
        raise SystemExit(1) from e
