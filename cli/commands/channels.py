"""Channels command: list known channels."""
from agent.display import print_channel_table, print_header
from core.settings import Settings
from platforms.adapters import list_channels


def channels_command(ctx):
    settings: Settings = ctx.obj['settings']

    rows = []
    for channel in list_channels(settings):
        details = "configured" if channel.configured else "missing credentials"
        rows.append({"name": channel.name, "enabled": channel.enabled, "details": details})

    print_header("Channels")
    print_channel_table(rows)
