"""SDK options builder for agent sessions.

``SessionOptions`` is the runtime-agnostic description of a session; it is
mapped to ``ClaudeAgentOptions`` only at the SDK boundary.
"""
from dataclasses import dataclass, field, replace
from pathlib import Path

from claude_agent_sdk import ClaudeAgentOptions

from agent.core.memory import MemoryBlock, render_memory_blocks

INCLUDE_PARTIAL_MESSAGES = True

# Unattended operation: nobody is at a terminal to approve tool calls.
BYPASS_PERMISSIONS = "bypassPermissions"


@dataclass(frozen=True)
class SessionOptions:
    """Options for creating or resuming a session.

    The lifecycle only fills ``model`` and ``memory`` when creating. Runtimes
    that rebuild the prompt on every connection re-apply them on resume
    (see ``ClaudeAgentRuntime``).
    """
    permission_mode: str
    allowed_tools: list[str]
    cwd: Path
    system_prompt: str
    model: str | None = None
    memory: list[MemoryBlock] = field(default_factory=list)

    def for_creation(self, model: str | None, memory: list[MemoryBlock]) -> "SessionOptions":
        """Return a copy with the creation-only fields set."""
        return replace(self, model=model, memory=list(memory))


def create_agent_sdk_options(
    options: SessionOptions,
    resume_session_id: str | None = None,
) -> ClaudeAgentOptions:
    """Map ``SessionOptions`` to ``ClaudeAgentOptions``.

    Memory blocks are appended to the system prompt. Each ``ClaudeSDKClient``
    takes its prompt and model from these options, resumed or not, so both
    are passed whenever they are set.

    Args:
        options: Session description.
        resume_session_id: Session ID to resume.

    Returns:
        Configured ClaudeAgentOptions.
    """
    system_prompt = options.system_prompt
    if options.memory:
        system_prompt = f"{system_prompt}\n\n{render_memory_blocks(options.memory)}"

    sdk_options = {
        "cwd": str(options.cwd),
        "allowed_tools": list(options.allowed_tools),
        "permission_mode": options.permission_mode,
        "include_partial_messages": INCLUDE_PARTIAL_MESSAGES,
        "system_prompt": {
            "type": "preset",
            "preset": "claude_code",
            "append": system_prompt,
        },
    }

    if resume_session_id:
        sdk_options["resume"] = resume_session_id
    if options.model:
        sdk_options["model"] = options.model

    return ClaudeAgentOptions(**sdk_options)
