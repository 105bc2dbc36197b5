"""Click command group for Agent Relay.

Loads ``.env``, configures logging from settings, and dispatches to the
subcommands in ``cli.commands``.
"""
import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from cli.commands.channels import channels_command
from cli.commands.reset import reset_command
from cli.commands.run import run_command
from cli.commands.status import status_command
from core.settings import get_settings


@click.group()
@click.option(
    '--env-file',
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path('.env'),
    show_default=True,
    help='Environment file to load before reading settings'
)
@click.option(
    '--log-level',
    default=None,
    help='Override RELAY_LOG_LEVEL (e.g. DEBUG)'
)
@click.pass_context
def cli(ctx, env_file: Path, log_level: str | None):
    """Agent Relay - bridge chat channels to one persistent agent."""
    load_dotenv(env_file)
    get_settings.cache_clear()
    settings = get_settings()

    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj['settings'] = settings


@cli.command()
@click.pass_context
def run(ctx):
    """Start all enabled channels and relay messages until interrupted."""
    run_command(ctx)


@cli.command()
@click.pass_context
def status(ctx):
    """Show the stored agent identity."""
    status_command(ctx)


@cli.command()
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def reset(ctx, yes: bool):
    """Forget the agent identity; the next message creates a new agent."""
    reset_command(ctx, yes)


@cli.command()
@click.pass_context
def channels(ctx):
    """List known channels and their configuration state."""
    channels_command(ctx)
