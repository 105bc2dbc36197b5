"""Initial memory blocks for a newly created agent.

A new session starts with a persona block and a human block, rendered into
the appended system prompt.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class MemoryBlock:
    """One labelled memory section."""
    label: str
    value: str


DEFAULT_PERSONA = (
    "I am {agent_name}, a personal assistant reachable over several chat apps. "
    "I keep one continuous conversation with my user no matter which app they write from. "
    "I am concise in chat, and I say so plainly when I do not know something."
)

DEFAULT_HUMAN = (
    "Nothing is known about the user yet. "
    "Record their name, preferences and ongoing projects here as I learn them."
)


def load_memory_blocks(
    agent_name: str,
    overrides: dict[str, str] | None = None,
) -> list[MemoryBlock]:
    """Build the initial memory blocks for ``agent_name``.

    Args:
        agent_name: Display name substituted into the persona template.
        overrides: Optional ``label -> value`` mapping (from the agent
            profile). Overrides replace defaults with the same label; extra
            labels are appended in the given order.
    """
    values = {
        "persona": DEFAULT_PERSONA.format(agent_name=agent_name),
        "human": DEFAULT_HUMAN,
    }
    for label, value in (overrides or {}).items():
        values[label] = value.format(agent_name=agent_name) if "{agent_name}" in value else value
    return [MemoryBlock(label=label, value=value) for label, value in values.items()]


def render_memory_blocks(blocks: list[MemoryBlock]) -> str:
    """Render memory blocks as tagged sections for the system prompt."""
    return "\n".join(f"<{block.label}>\n{block.value}\n</{block.label}>" for block in blocks)
