"""
Configuration constants for the Cursor agent stream normalizer.

Defines tool-name tables, display labels, and truncation limits.
"""

# Native tool-call keys (after stripping NATIVE_TOOL_KEY_SUFFIX and
# de-camel-casing) mapped to the canonical tool name used for display
NATIVE_TOOL_NAMES = {
    "shell": "run_terminal_cmd",
    "read": "read_file",
    "edit": "edit",
    "search-replace": "search_replace",
    "write": "write",
    "list-dir": "list_dir",
    "grep": "grep",
    "glob-file-search": "glob_file_search",
    "delete-file": "delete_file",
    "apply-patch": "apply_patch",
    "web-search": "web_search",
    "fetch-url": "fetch_url",
}

# Suffix carried by native keys in the agent output (e.g. "shellToolCall")
NATIVE_TOOL_KEY_SUFFIX = "ToolCall"

# Canonical tool name -> short human label
TOOL_LABELS = {
    "read_file": "Read file",
    "search_replace": "Edit",
    "edit": "Edit",
    "run_terminal_cmd": "Terminal",
    "grep": "Grep",
    "list_dir": "List directory",
    "delete_file": "Delete file",
    "write": "Write",
    "glob_file_search": "Find files",
    "apply_patch": "Apply patch",
    "web_search": "Web search",
    "fetch_url": "Fetch URL",
}

# camelCase <-> snake_case argument pairs filled in both directions
ARG_ALIASES = (
    ("oldString", "old_string"),
    ("newString", "new_string"),
)

THINKING_LABEL = "Thinking…"
ELLIPSIS = "…"

# All limits count the trailing ellipsis
LABEL_MAX_CHARS = 60
DETAILS_MAX_CHARS = 80
DETAILS_OLD_VALUE_MAX_CHARS = 30
DETAILS_DIFF_MAX_CHARS = 40
DETAILS_SEPARATOR = " · "

# Tool output kept on an activity block
TOOL_OUTPUT_MAX_CHARS = 4000
