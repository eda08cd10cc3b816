"""
Stream normalization for the Cursor agent CLI.

Turns the agent's ``--output-format stream-json`` NDJSON output into an
ordered list of display blocks and the wire events streamed to clients.

Example::

    from cursor_stream import LineBuffer, StreamNormalizer, encode_event

    buffer = LineBuffer()
    normalizer = StreamNormalizer()
    for line in buffer.feed(chunk):
        for event in normalizer.process_line(line):
            response.write(encode_event(event))
"""

from .accumulator import BlockAccumulator
from .events import (
    ActivityBlock,
    Block,
    BlockEvent,
    DoneEvent,
    ErrorEvent,
    NDJSON_CONTENT_TYPE,
    StreamEvent,
    TextBlock,
    TitleEvent,
    dump_blocks,
    encode_event,
    load_blocks,
)
from .formatting import build_activity_block, format_details, tool_label
from .normalizer import StreamNormalizer
from .parser import LineBuffer, classify_line, parse_line
from .tools import CanonicalToolCall, ToolCallSource, extract_tool_call, extract_tool_output

__version__ = "0.1.0"
__all__ = [
    "StreamNormalizer",
    "BlockAccumulator",
    "LineBuffer",
    "classify_line",
    "parse_line",
    "extract_tool_call",
    "extract_tool_output",
    "CanonicalToolCall",
    "ToolCallSource",
    "build_activity_block",
    "format_details",
    "tool_label",
    # Blocks and wire events
    "Block",
    "TextBlock",
    "ActivityBlock",
    "StreamEvent",
    "BlockEvent",
    "DoneEvent",
    "TitleEvent",
    "ErrorEvent",
    "NDJSON_CONTENT_TYPE",
    "encode_event",
    "dump_blocks",
    "load_blocks",
]
