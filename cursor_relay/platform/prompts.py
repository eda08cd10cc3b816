"""
Prompt construction for agent invocations.

The agent receives a single stdin payload.  Image attachments are not sent
inline; the prompt lists their file paths and asks the agent to read them.
"""

import logging
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt constants
# ---------------------------------------------------------------------------

IMAGE_NOTE_HEADER = "[Attached images]"

IMAGE_NOTE_INSTRUCTION = (
    "The user attached the image file(s) above. Read each file with your "
    "file-reading tool before answering."
)

TITLE_PROMPT_TEMPLATE = (
    "Generate a short title (at most 6 words) for a chat that starts with the "
    "message below. Reply with the title only: no quotes, no punctuation at the "
    "end, no explanation. Do not use any tools.\n\n"
    "Message:\n{message}"
)

TITLE_MAX_CHARS = 60
TITLE_SOURCE_MAX_CHARS = 2000


def build_agent_stdin(content: str, image_paths: Optional[Sequence[str]] = None) -> str:
    """Build the stdin payload: the message plus an optional image note."""
    if not image_paths:
        return content

    lines = [IMAGE_NOTE_HEADER]
    lines.extend(f"- {p}" for p in image_paths)
    lines.append(IMAGE_NOTE_INSTRUCTION)
    note = "\n".join(lines)

    if not content:
        return note
    return f"{content}\n\n{note}"


def build_title_prompt(message: str) -> str:
    return TITLE_PROMPT_TEMPLATE.format(message=message[:TITLE_SOURCE_MAX_CHARS])


def clean_title(raw: str) -> Optional[str]:
    """Reduce agent output to a usable title, or ``None`` if nothing is left.

    Takes the first non-empty line, drops markdown heading marks, a
    ``Title:`` prefix and surrounding quotes, and caps the length.
    """
    for line in raw.splitlines():
        title = line.strip().lstrip("#").strip()
        if not title:
            continue
        if title.lower().startswith("title:"):
            title = title[len("title:"):].strip()
        title = title.strip("\"'`*").strip()
        if not title:
            continue
        if len(title) > TITLE_MAX_CHARS:
            title = title[:TITLE_MAX_CHARS].rstrip()
        return title
    return None
