"""
Tool-call extraction from heterogeneous agent events.

The agent reports tool calls in several shapes depending on version and
model.  Each shape has its own strategy; ``extract_tool_call`` tries them in
a fixed priority order and returns the first hit:

1. native structured  ``{"tool_call": {"readToolCall": {"args": {...}}}}``
2. function-call      ``{"function": {"name": ..., "arguments": "<json>"}}``
3. tool-use           ``{"type": "tool_use", "name": ..., "input": {...}}``
4. bracketed text     ``[Tool: read_file path=/tmp/foo.ts]``
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from .config import TOOL_OUTPUT_MAX_CHARS
from .parser import extract_message_text
from .utils import add_arg_aliases, canonical_tool_name, flatten_args, truncate

logger = logging.getLogger(__name__)


class ToolCallSource(str, Enum):
    NATIVE = "native"
    FUNCTION = "function"
    TOOL_USE = "tool_use"
    BRACKETED = "bracketed"


@dataclass
class CanonicalToolCall:
    """Normalised ``(tool_name, args)`` pair, independent of source format."""

    tool_name: str
    args: Dict[str, str]
    source: ToolCallSource


_BRACKETED = re.compile(
    r'\[Tool:\s*(?P<name>[^\s\]]+)(?P<rest>(?:\s+[^\s=\]]+=(?:"(?:[^"\\]|\\.)*"|[^\s\]]*))*)\s*\]'
)
_BRACKETED_ARG = re.compile(r'([^\s=\]]+)=("(?:[^"\\]|\\.)*"|[^\s\]]*)')


def _build(name: str, raw_args: Any, source: ToolCallSource, *, native: bool = False) -> CanonicalToolCall:
    args = add_arg_aliases(flatten_args(raw_args))
    return CanonicalToolCall(
        tool_name=canonical_tool_name(name, native=native),
        args=args,
        source=source,
    )


def _candidate_items(event: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield the event, its ``tool_call`` payload, and each message content item."""
    yield event
    tool_call = event.get("tool_call")
    if isinstance(tool_call, dict):
        yield tool_call
    message = event.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), list):
        for item in message["content"]:
            if isinstance(item, dict):
                yield item


def _decode_arguments(arguments: Any) -> Any:
    if isinstance(arguments, str):
        try:
            return json.loads(arguments)
        except (json.JSONDecodeError, ValueError):
            return {}
    return arguments


def _native_entry(event: Dict[str, Any]) -> Optional[Tuple[str, Dict[str, Any]]]:
    tool_call = event.get("tool_call")
    if not isinstance(tool_call, dict):
        return None
    for key, value in tool_call.items():
        if isinstance(value, dict) and isinstance(value.get("args"), dict):
            return key, value
    return None


def from_native(event: Dict[str, Any]) -> Optional[CanonicalToolCall]:
    entry = _native_entry(event)
    if entry is None:
        return None
    key, value = entry
    return _build(key, value["args"], ToolCallSource.NATIVE, native=True)


def from_function_call(event: Dict[str, Any]) -> Optional[CanonicalToolCall]:
    for item in _candidate_items(event):
        fn = item.get("function")
        if isinstance(fn, dict) and isinstance(fn.get("name"), str):
            return _build(fn["name"], _decode_arguments(fn.get("arguments")), ToolCallSource.FUNCTION)
        if item.get("type") == "function_call" and isinstance(item.get("name"), str):
            return _build(item["name"], _decode_arguments(item.get("arguments")), ToolCallSource.FUNCTION)
    return None


def from_tool_use(event: Dict[str, Any]) -> Optional[CanonicalToolCall]:
    for item in _candidate_items(event):
        if item.get("type") == "tool_use" and isinstance(item.get("name"), str):
            return _build(item["name"], _decode_arguments(item.get("input")), ToolCallSource.TOOL_USE)
    return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def parse_bracketed(text: str) -> Optional[CanonicalToolCall]:
    """Parse ``[Tool: <name> key=value key="quoted value" ...]``."""
    match = _BRACKETED.search(text)
    if match is None:
        return None
    args = {k: _unquote(v) for k, v in _BRACKETED_ARG.findall(match.group("rest"))}
    return _build(match.group("name"), args, ToolCallSource.BRACKETED)


def from_bracketed(event: Dict[str, Any]) -> Optional[CanonicalToolCall]:
    for text in (extract_message_text(event), event.get("text")):
        if isinstance(text, str) and text:
            call = parse_bracketed(text)
            if call is not None:
                return call
    return None


# Priority order matters: the first strategy that recognises the event wins.
EXTRACTION_STRATEGIES: Tuple[Callable[[Dict[str, Any]], Optional[CanonicalToolCall]], ...] = (
    from_native,
    from_function_call,
    from_tool_use,
    from_bracketed,
)


def extract_tool_call(event: Dict[str, Any]) -> Optional[CanonicalToolCall]:
    """Recover the canonical tool call from a tool event, or ``None``.

    Never raises: a strategy that trips over an unexpected shape is skipped.
    """
    for strategy in EXTRACTION_STRATEGIES:
        try:
            call = strategy(event)
        except Exception as e:
            logger.debug(f"Tool-call strategy {strategy.__name__} failed: {e}")
            continue
        if call is not None:
            return call
    return None


def _text_fields(obj: Dict[str, Any]) -> list[str]:
    parts = []
    for key in ("stdout", "stderr", "content", "output", "message"):
        value = obj.get(key)
        if isinstance(value, str) and value:
            parts.append(value)
    return parts


def extract_tool_output(event: Dict[str, Any]) -> Optional[str]:
    """Pull a displayable output string out of a tool-result event."""
    output: Optional[str] = None

    entry = _native_entry(event)
    if entry is not None:
        result = entry[1].get("result")
        if isinstance(result, str):
            output = result
        elif isinstance(result, dict):
            for branch in ("success", "error", "failure"):
                sub = result.get(branch)
                if isinstance(sub, dict):
                    parts = _text_fields(sub)
                    if parts:
                        output = "\n".join(parts)
                        break
                elif isinstance(sub, str) and sub:
                    output = sub
                    break

    if output is None:
        for key in ("result", "output", "content"):
            value = event.get(key)
            if isinstance(value, str) and value:
                output = value
                break
            if isinstance(value, list):
                texts = [
                    item["text"]
                    for item in value
                    if isinstance(item, dict) and isinstance(item.get("text"), str)
                ]
                if texts:
                    output = "".join(texts)
                    break

    if output is None:
        text = extract_message_text(event)
        if text and parse_bracketed(text) is None:
            output = text

    if not output:
        return None
    return truncate(output, TOOL_OUTPUT_MAX_CHARS)
