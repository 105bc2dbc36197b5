"""Core agent session module.

Contains session creation/resumption over the Claude Agent SDK, stream
event conversion, session options, the agent profile and memory blocks.
"""
from .events import (
    AssistantDelta,
    EventType,
    StreamEvent,
    TerminalResult,
    ToolCallStart,
    ToolResult,
    convert_sdk_message,
)
from .memory import MemoryBlock, load_memory_blocks
from .options import BYPASS_PERMISSIONS, SessionOptions, create_agent_sdk_options
from .profile import AgentProfile, load_agent_profile
from .session import AgentRuntime, AgentSession, ClaudeAgentRuntime, Session
from .system_prompt import SYSTEM_PROMPT

__all__ = [
    'AssistantDelta',
    'EventType',
    'StreamEvent',
    'TerminalResult',
    'ToolCallStart',
    'ToolResult',
    'convert_sdk_message',
    'MemoryBlock',
    'load_memory_blocks',
    'BYPASS_PERMISSIONS',
    'SessionOptions',
    'create_agent_sdk_options',
    'AgentProfile',
    'load_agent_profile',
    'AgentRuntime',
    'AgentSession',
    'ClaudeAgentRuntime',
    'Session',
    'SYSTEM_PROMPT',
]
