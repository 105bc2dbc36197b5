"""Agent Relay - agent session package.

This package wraps the Claude Agent SDK session (create, resume, stream),
the agent profile and memory, skill installation, and console display helpers.
"""
from pathlib import Path

# Project root directory (where skills/, agent.yaml, etc. are located)
PROJECT_ROOT = Path(__file__).parent.parent

__all__ = ['PROJECT_ROOT']
