"""Command-line interface for Agent Relay."""
