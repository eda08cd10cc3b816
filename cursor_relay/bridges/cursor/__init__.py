"""Cursor agent CLI bridge."""

from cursor_relay.bridges.cursor.bridge import (
    CursorBridge,
    InvalidMessageError,
    ProjectNotFoundError,
)
from cursor_relay.bridges.cursor.launcher import (
    AgentCliNotFoundError,
    AgentLauncher,
    LaunchError,
)
from cursor_relay.bridges.cursor.session import Invocation, InvocationManager

__all__ = [
    "CursorBridge",
    "AgentLauncher",
    "Invocation",
    "InvocationManager",
    "LaunchError",
    "AgentCliNotFoundError",
    "InvalidMessageError",
    "ProjectNotFoundError",
]
