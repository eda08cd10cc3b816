"""
General utility functions for the Cursor relay.

Pure functions with no business-logic dependencies — ids, timestamps,
secret redaction.
"""

import re
import uuid
from datetime import datetime, timezone


def timestamp() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    """Short random identifier for rows."""
    return uuid.uuid4().hex[:21]


def redact_secrets(text: str) -> str:
    """Redact tokens and secrets from text for safe logging."""
    if not text:
        return text

    text = re.sub(r"key_[a-zA-Z0-9]{32,255}", "key_***REDACTED***", text)
    text = re.sub(r"gh[pousr]_[a-zA-Z0-9]{36,255}", "gh*_***REDACTED***", text)
    text = re.sub(r"sk-[a-zA-Z0-9\-_]{20,200}", "sk-***REDACTED***", text)
    text = re.sub(r"://[^:@\s]+:[^@\s]+@", "://***REDACTED***@", text)
    text = re.sub(
        r'(CURSOR_API_KEY|OPENAI_API_KEY|ANTHROPIC_API_KEY|GIT_TOKEN)\s*=\s*[^\s\'"]+',
        r"\1=***REDACTED***",
        text,
    )
    return text
