"""
Utility functions for the Cursor agent stream normalizer.

Small pure helpers shared by the extractor and the formatter.
"""

import re
from typing import Any, Dict

from .config import ARG_ALIASES, ELLIPSIS, NATIVE_TOOL_KEY_SUFFIX, NATIVE_TOOL_NAMES

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def truncate(text: str, limit: int) -> str:
    """Shorten *text* to at most *limit* characters, ellipsis included.

    Examples:
        truncate("abcdef", 4) -> "abc…"
        truncate("abc", 4) -> "abc"
    """
    if len(text) <= limit:
        return text
    return text[: max(limit - len(ELLIPSIS), 0)] + ELLIPSIS


def normalize_tool_key(key: str) -> str:
    """Reduce a native tool key to its kebab-case lookup form.

    Examples:
        "shellToolCall" -> "shell"
        "searchReplaceToolCall" -> "search-replace"
        "list_dir" -> "list-dir"
    """
    if key.endswith(NATIVE_TOOL_KEY_SUFFIX) and len(key) > len(NATIVE_TOOL_KEY_SUFFIX):
        key = key[: -len(NATIVE_TOOL_KEY_SUFFIX)]
    return _CAMEL_BOUNDARY.sub(r"-\1", key).lower().replace("_", "-")


def canonical_tool_name(name: str, *, native: bool = False) -> str:
    """Map a tool key or name from any source format to its canonical name.

    Known keys go through the lookup table.  Unknown native keys are
    de-camel-cased to snake_case; unknown names from the other formats are
    kept as given.
    """
    kebab = normalize_tool_key(name)
    if kebab in NATIVE_TOOL_NAMES:
        return NATIVE_TOOL_NAMES[kebab]
    if native:
        return kebab.replace("-", "_")
    return name


def flatten_args(raw: Any) -> Dict[str, str]:
    """Keep only string and number leaves of an argument map, as strings."""
    if not isinstance(raw, dict):
        return {}
    flat: Dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, bool):
            continue
        if isinstance(value, str):
            flat[str(key)] = value
        elif isinstance(value, (int, float)):
            flat[str(key)] = str(value)
    return flat


def add_arg_aliases(args: Dict[str, str]) -> Dict[str, str]:
    """Cross-populate camelCase/snake_case pairs so both keys exist."""
    for camel, snake in ARG_ALIASES:
        if camel in args and snake not in args:
            args[snake] = args[camel]
        elif snake in args and camel not in args:
            args[camel] = args[snake]
    return args
