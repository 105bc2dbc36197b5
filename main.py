#!/usr/bin/env python
"""Entry point for Agent Relay.

Usage:
  python main.py run                # Relay all enabled channels
  python main.py status             # Show the stored agent identity
  python main.py reset              # Forget the agent identity
  python main.py channels           # List channels
  python main.py --help             # Show help
"""

from cli.main import cli

if __name__ == "__main__":
    cli()
