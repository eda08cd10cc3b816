"""
Stream normalizer — classify → extract → format → accumulate.

Feeds raw agent output lines through the full pipeline and returns the
stream events each line produced.  One normalizer per invocation.

Usage::

    normalizer = StreamNormalizer()
    for line in lines:
        for event in normalizer.process_line(line):
            publish(event)
    text = normalizer.final_text()
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from .accumulator import BlockAccumulator
from .events import Block, BlockEvent, ErrorEvent, StreamEvent
from .formatting import build_activity_block, format_tool_call
from .parser import AgentError, AgentLine, AssistantText, FinalResult, classify_line
from .tools import extract_tool_call

logger = logging.getLogger(__name__)

_EMBEDDED_TOOL_TYPES = ("tool_use", "function_call")


def _embedded_tool_items(raw: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Tool-use / function items riding inside an assistant message."""
    message = raw.get("message")
    if not isinstance(message, dict) or not isinstance(message.get("content"), list):
        return
    for item in message["content"]:
        if not isinstance(item, dict):
            continue
        if item.get("type") in _EMBEDDED_TOOL_TYPES or isinstance(item.get("function"), dict):
            yield item


class StreamNormalizer:
    """Per-invocation pipeline state: blocks, session id, final result."""

    def __init__(self) -> None:
        self.accumulator = BlockAccumulator()
        self.session_id: Optional[str] = None
        self.result_text: Optional[str] = None

    @property
    def blocks(self) -> List[Block]:
        return self.accumulator.blocks

    def process_line(self, line: str) -> List[StreamEvent]:
        """Classify one raw line and fold it in; malformed lines yield nothing."""
        event = classify_line(line)
        if event is None:
            return []
        return self.process_event(event)

    def process_event(self, event: AgentLine) -> List[StreamEvent]:
        if event.session_id:
            self.session_id = event.session_id

        if isinstance(event, AssistantText):
            out: List[StreamEvent] = []
            piece = self.accumulator.add_text(event.text)
            if piece is not None:
                out.append(BlockEvent(block=piece))
            for item in _embedded_tool_items(event.raw):
                call = extract_tool_call(item)
                if call is not None:
                    block = self.accumulator.add_activity(format_tool_call(call))
                    out.append(BlockEvent(block=block))
            return out

        if isinstance(event, FinalResult):
            if event.result:
                self.result_text = event.result
            return []

        if isinstance(event, AgentError):
            logger.debug(f"Agent reported error: {event.message}")
            return [ErrorEvent(error=event.message)]

        block = build_activity_block(event)
        if block is None:
            return []
        self.accumulator.add_activity(block)
        return [BlockEvent(block=block)]

    def finalize(self) -> List[StreamEvent]:
        """Close the stream; a result-only run gets its result as one text block."""
        if self.has_text() or not self.result_text:
            return []
        piece = self.accumulator.add_text(self.result_text)
        return [BlockEvent(block=piece)] if piece is not None else []

    def has_text(self) -> bool:
        return bool(self.accumulator.text_blocks())

    def final_text(self) -> str:
        """Joined text blocks, or the final result string if there were none."""
        if self.has_text():
            return self.accumulator.full_text()
        return self.result_text or ""
