"""Reset command: forget the stored agent identity."""
import click

from agent.display import print_info, print_success
from core.settings import Settings
from platforms.store import IdentityStore


def reset_command(ctx, yes: bool):
    settings: Settings = ctx.obj['settings']
    store = IdentityStore(settings.store.path)

    if store.agent_id is None:
        print_info("No agent identity stored; nothing to reset.")
        return

    if not yes and not click.confirm(f"Forget agent {store.agent_id}?"):
        print_info("Cancelled")
        return

    store.reset()
    print_success("Agent identity cleared. The next message creates a new agent.")
