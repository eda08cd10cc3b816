"""
Activity formatting — turns classified agent events into display blocks.

Labels come from a fixed table; details are a single line built from the
tool arguments, e.g. ``path: src/app.py · old: def main()…``.
"""

import logging
from typing import Dict, Optional

from .config import (
    DETAILS_DIFF_MAX_CHARS,
    DETAILS_MAX_CHARS,
    DETAILS_OLD_VALUE_MAX_CHARS,
    DETAILS_SEPARATOR,
    LABEL_MAX_CHARS,
    THINKING_LABEL,
    TOOL_LABELS,
)
from .events import ActivityBlock
from .parser import AgentLine, Thinking, ToolCallResult, ToolCallStart, UnknownEvent, extract_message_text
from .tools import CanonicalToolCall, extract_tool_call, extract_tool_output
from .utils import truncate

logger = logging.getLogger(__name__)


def _one_line(text: str) -> str:
    return " ".join(text.split())


def tool_label(tool_name: str) -> str:
    """Short human label for a canonical tool name (unknown names pass through)."""
    return TOOL_LABELS.get(tool_name, tool_name)


def format_details(args: Dict[str, str]) -> Optional[str]:
    """Build the one-line detail string for a tool call, or ``None``.

    Fields appear in a fixed order: path, command, pattern, old value, diff.
    """
    parts = []

    path = args.get("path") or args.get("file_path")
    if path:
        parts.append(f"path: {_one_line(path)}")

    command = args.get("command")
    if command:
        parts.append(f"command: {_one_line(command)}")

    pattern = args.get("pattern")
    if pattern:
        parts.append(f"pattern: {_one_line(pattern)}")

    old = args.get("old_string")
    if old:
        parts.append(f"old: {truncate(_one_line(old), DETAILS_OLD_VALUE_MAX_CHARS)}")

    diff = args.get("diff")
    if diff:
        parts.append(f"diff: {truncate(_one_line(diff), DETAILS_DIFF_MAX_CHARS)}")

    if not parts:
        return None
    return truncate(DETAILS_SEPARATOR.join(parts), DETAILS_MAX_CHARS)


def fallback_label(text: str, default: str) -> str:
    """Label for an activity we could not classify: its text, shortened."""
    flat = _one_line(text)
    if not flat:
        return default
    return truncate(flat, LABEL_MAX_CHARS)


def format_tool_call(
    call: CanonicalToolCall,
    *,
    kind: str = "tool_call",
    output: Optional[str] = None,
) -> ActivityBlock:
    return ActivityBlock(
        kind=kind,
        label=tool_label(call.tool_name),
        details=format_details(call.args),
        tool_name=call.tool_name,
        args=dict(call.args) or None,
        output=output,
    )


def build_activity_block(line: AgentLine) -> Optional[ActivityBlock]:
    """Return the activity block for *line*, or ``None`` if it is not an activity.

    Never raises; anything unexpected degrades to a generic label.
    """
    if isinstance(line, Thinking):
        return ActivityBlock(kind="thinking", label=THINKING_LABEL)

    if isinstance(line, ToolCallStart):
        call = extract_tool_call(line.raw)
        if call is not None:
            return format_tool_call(call)
        return ActivityBlock(
            kind="tool_call",
            label=fallback_label(extract_message_text(line.raw), "Tool call"),
        )

    if isinstance(line, ToolCallResult):
        call = extract_tool_call(line.raw)
        output = extract_tool_output(line.raw)
        if call is not None:
            return format_tool_call(call, kind="tool_result", output=output)
        return ActivityBlock(
            kind="tool_result",
            label=fallback_label(output or "", "Tool result"),
            output=output,
        )

    if isinstance(line, UnknownEvent):
        label = line.event_type or "activity"
        return ActivityBlock(kind=label, label=fallback_label(label, "activity"))

    return None
