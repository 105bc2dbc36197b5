"""Agent profile loader.

The profile is an optional YAML file (``agent.yaml`` by default) that
overrides the allowed tool list, appends to the system prompt, and supplies
memory block values. Missing keys fall back to built-in defaults.

Example:
    allowed_tools: [Bash, Read, Write, Glob, Grep, WebSearch]
    system_prompt: |
      Answer in English unless the user writes in another language.
    memory:
      human: The user is a backend engineer in Berlin.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path

from agent.core.system_prompt import SYSTEM_PROMPT
from core.yaml_utils import load_yaml_config

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_TOOLS = [
    "Bash",
    "Read",
    "Write",
    "Edit",
    "Glob",
    "Grep",
    "WebFetch",
    "WebSearch",
    "Skill",
]


@dataclass(frozen=True)
class AgentProfile:
    """Resolved agent profile."""
    allowed_tools: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_TOOLS))
    system_prompt: str = SYSTEM_PROMPT
    memory: dict[str, str] = field(default_factory=dict)


def load_agent_profile(path: Path) -> AgentProfile:
    """Load the agent profile from ``path``, falling back to defaults.

    Raises:
        ValueError: If a key has the wrong type.
    """
    config = load_yaml_config(path)
    if not config:
        logger.debug(f"No agent profile at {path}, using defaults")
        return AgentProfile()

    tools = config.get("allowed_tools", DEFAULT_ALLOWED_TOOLS)
    if not isinstance(tools, list) or not all(isinstance(t, str) for t in tools):
        raise ValueError(f"{path}: allowed_tools must be a list of tool names")

    memory = config.get("memory") or {}
    if not isinstance(memory, dict):
        raise ValueError(f"{path}: memory must map block labels to text")

    system_prompt = SYSTEM_PROMPT
    if extra := config.get("system_prompt"):
        system_prompt = f"{SYSTEM_PROMPT}\n{str(extra).strip()}\n"

    logger.info(f"Loaded agent profile from {path} ({len(tools)} tools, {len(memory)} memory overrides)")
    return AgentProfile(
        allowed_tools=list(tools),
        system_prompt=system_prompt,
        memory={str(k): str(v) for k, v in memory.items()},
    )
