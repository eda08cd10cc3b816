"""
Line classifier for Cursor agent NDJSON output.

Each line of ``agent --print --output-format stream-json`` output is parsed
into one of a closed set of event variants.  Blank lines and lines that are
not JSON objects are discarded (the agent is allowed to emit them).
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class AgentLine:
    """Base for every classified line.  ``raw`` is the decoded JSON object."""

    raw: Dict[str, Any]
    session_id: Optional[str] = None

    @property
    def event_type(self) -> str:
        return str(self.raw.get("type") or "")


@dataclass
class SystemInit(AgentLine):
    subtype: str = ""


@dataclass
class UserEcho(AgentLine):
    text: str = ""


@dataclass
class Thinking(AgentLine):
    text: str = ""


@dataclass
class ToolCallStart(AgentLine):
    call_id: Optional[str] = None


@dataclass
class ToolCallResult(AgentLine):
    call_id: Optional[str] = None


@dataclass
class AssistantText(AgentLine):
    text: str = ""


@dataclass
class FinalResult(AgentLine):
    result: Optional[str] = None
    is_error: bool = False


@dataclass
class AgentError(AgentLine):
    message: str = ""


@dataclass
class UnknownEvent(AgentLine):
    """A well-formed line whose ``type`` we do not recognise."""


def parse_line(line: str) -> Optional[Dict[str, Any]]:
    """Decode one NDJSON line, returning ``None`` for blank or malformed input."""
    trimmed = line.strip()
    if not trimmed:
        return None
    try:
        parsed = json.loads(trimmed)
    except (json.JSONDecodeError, ValueError, RecursionError):
        logger.debug(f"Discarding non-JSON line: {trimmed[:120]}")
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def extract_message_text(obj: Dict[str, Any]) -> str:
    """Concatenate the text parts of ``obj["message"]``.

    Accepts ``{"content": [{"type": "text", "text": ...}, "plain", ...]}``,
    ``{"text": ...}`` or a bare string.
    """
    message = obj.get("message")
    if isinstance(message, str):
        return message
    if not isinstance(message, dict):
        return ""

    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
        return "".join(parts)

    text = message.get("text")
    return text if isinstance(text, str) else ""


def _session_id_of(obj: Dict[str, Any]) -> Optional[str]:
    sid = obj.get("session_id") or obj.get("sessionId")
    if isinstance(sid, str) and sid:
        return sid
    return None


def _error_message_of(obj: Dict[str, Any]) -> str:
    err = obj.get("error")
    if isinstance(err, str):
        return err
    if isinstance(err, dict):
        msg = err.get("message")
        if isinstance(msg, str):
            return msg
        return json.dumps(err)
    text = obj.get("message")
    if isinstance(text, str):
        return text
    return extract_message_text(obj) or "Unknown agent error"


def classify_event(obj: Dict[str, Any]) -> AgentLine:
    """Map a decoded JSON object to its event variant."""
    sid = _session_id_of(obj)
    event_type = obj.get("type")
    subtype = str(obj.get("subtype") or "")

    if event_type == "system":
        return SystemInit(raw=obj, session_id=sid, subtype=subtype)

    if event_type == "user":
        return UserEcho(raw=obj, session_id=sid, text=extract_message_text(obj))

    if event_type == "thinking":
        text = obj.get("text")
        if not isinstance(text, str):
            text = extract_message_text(obj)
        return Thinking(raw=obj, session_id=sid, text=text)

    if event_type in ("tool_call", "tool_use"):
        call_id = obj.get("call_id") or obj.get("id")
        if subtype == "completed":
            return ToolCallResult(raw=obj, session_id=sid, call_id=call_id)
        return ToolCallStart(raw=obj, session_id=sid, call_id=call_id)

    if event_type == "tool_result":
        call_id = obj.get("call_id") or obj.get("tool_use_id")
        return ToolCallResult(raw=obj, session_id=sid, call_id=call_id)

    if event_type == "assistant":
        return AssistantText(raw=obj, session_id=sid, text=extract_message_text(obj))

    if event_type == "result" or (event_type is None and "result" in obj):
        result = obj.get("result")
        return FinalResult(
            raw=obj,
            session_id=sid,
            result=result if isinstance(result, str) else None,
            is_error=bool(obj.get("is_error")),
        )

    if event_type == "error" or "error" in obj:
        return AgentError(raw=obj, session_id=sid, message=_error_message_of(obj))

    return UnknownEvent(raw=obj, session_id=sid)


def classify_line(line: str) -> Optional[AgentLine]:
    """Parse and classify one raw output line; ``None`` means discard."""
    obj = parse_line(line)
    if obj is None:
        return None
    return classify_event(obj)


class LineBuffer:
    """Splits a byte stream on newlines, holding back the unterminated tail.

    Bytes (not text) are buffered so a multi-byte UTF-8 sequence split across
    two reads is decoded intact.
    """

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, chunk: bytes) -> list[str]:
        """Add a chunk and return every complete line it finished."""
        self._pending += chunk
        *lines, self._pending = self._pending.split(b"\n")
        return [ln.decode("utf-8", errors="replace") for ln in lines]

    def flush(self) -> Optional[str]:
        """Return the trailing unterminated fragment, if any, and reset."""
        tail, self._pending = self._pending, b""
        if not tail.strip():
            return None
        return tail.decode("utf-8", errors="replace")
