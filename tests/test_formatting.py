"""Unit tests for activity labels, detail strings and block construction."""

from cursor_stream.config import DETAILS_MAX_CHARS, LABEL_MAX_CHARS
from cursor_stream.events import ActivityBlock
from cursor_stream.formatting import build_activity_block, format_details, tool_label
from cursor_stream.parser import classify_event

from tests.conftest import make_bracketed_tool, make_init, make_native_tool


class TestToolLabel:
    def test_known_and_unknown(self):
        assert tool_label("read_file") == "Read file"
        assert tool_label("run_terminal_cmd") == "Terminal"
        assert tool_label("search_replace") == "Edit"
        assert tool_label("mystery") == "mystery"


class TestFormatDetails:
    def test_path(self):
        assert format_details({"path": "/tmp/foo.ts"}) == "path: /tmp/foo.ts"

    def test_file_path_alias_and_order(self):
        details = format_details({"pattern": "TODO", "file_path": "a.py", "command": "rg"})
        assert details == "path: a.py · command: rg · pattern: TODO"

    def test_old_value_truncated(self):
        details = format_details({"path": "a.py", "old_string": "x" * 50})
        assert details == "path: a.py · old: " + "x" * 29 + "…"

    def test_multiline_collapsed(self):
        assert format_details({"command": "echo a\n  && echo b"}) == "command: echo a && echo b"

    def test_capped_with_ellipsis(self):
        details = format_details({"path": "/very/long/" * 20})
        assert len(details) == DETAILS_MAX_CHARS
        assert details.endswith("…")

    def test_empty(self):
        assert format_details({}) is None
        assert format_details({"unrelated": "x"}) is None


class TestBuildActivityBlock:
    def test_thinking(self):
        block = build_activity_block(classify_event({"type": "thinking", "text": "hmm"}))
        assert block == ActivityBlock(kind="thinking", label="Thinking…")

    def test_bracketed_reference_example(self):
        block = build_activity_block(classify_event(make_bracketed_tool()))
        assert block.kind == "tool_call"
        assert block.label == "Read file"
        assert block.details == "path: /tmp/foo.ts"
        assert block.tool_name == "read_file"
        assert block.args == {"path": "/tmp/foo.ts"}

    def test_unextractable_tool_call_falls_back_to_text(self):
        block = build_activity_block(classify_event(make_bracketed_tool("doing " * 30)))
        assert block.kind == "tool_call"
        assert len(block.label) == LABEL_MAX_CHARS
        assert block.tool_name is None

    def test_empty_tool_call_generic_label(self):
        block = build_activity_block(classify_event({"type": "tool_call"}))
        assert block.label == "Tool call"

    def test_tool_result_with_output(self):
        event = make_native_tool(result={"success": {"content": "hello"}})
        event["subtype"] = "completed"
        block = build_activity_block(classify_event(event))
        assert block.kind == "tool_result"
        assert block.label == "Read file"
        assert block.output == "hello"

    def test_unknown_event_uses_type(self):
        block = build_activity_block(classify_event({"type": "checkpoint"}))
        assert block.kind == "checkpoint"
        assert block.label == "checkpoint"

    def test_non_activities(self):
        assert build_activity_block(classify_event(make_init())) is None
        assert build_activity_block(classify_event({"type": "user", "message": "x"})) is None
