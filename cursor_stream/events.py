"""
Block and wire-event models.

Blocks are the stable, persisted representation of assistant output.
Stream events are what the HTTP layer writes to the client, one JSON
object per line::

    {"type": "block", "block": {...}}
    {"type": "title", "title": "..."}
    {"type": "error", "error": "..."}
    {"type": "done", "sessionId": "..." | null}
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TextBlock(BaseModel):
    """Accumulated assistant text."""

    type: Literal["text"] = "text"
    content: str


class ActivityBlock(BaseModel):
    """A tool call, thinking indicator, or other non-text agent activity."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["activity"] = "activity"
    kind: str
    label: str
    details: Optional[str] = None
    tool_name: Optional[str] = Field(default=None, alias="toolName")
    args: Optional[Dict[str, str]] = None
    output: Optional[str] = None


Block = Annotated[Union[TextBlock, ActivityBlock], Field(discriminator="type")]

_block_list_adapter = TypeAdapter(List[Block])


def dump_blocks(blocks: List[Block]) -> List[Dict[str, Any]]:
    """Serialise blocks to plain dicts (absent optional fields omitted)."""
    return [b.model_dump(by_alias=True, exclude_none=True) for b in blocks]


def load_blocks(data: Any) -> List[Block]:
    """Parse a list of block dicts back into models."""
    return _block_list_adapter.validate_python(data or [])


class BlockEvent(BaseModel):
    type: Literal["block"] = "block"
    block: Block


class DoneEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["done"] = "done"
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class TitleEvent(BaseModel):
    type: Literal["title"] = "title"
    title: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = Union[BlockEvent, DoneEvent, TitleEvent, ErrorEvent]

NDJSON_CONTENT_TYPE = "application/x-ndjson"


def encode_event(event: StreamEvent) -> str:
    """Encode a stream event as a single NDJSON line.

    ``done`` keeps an explicit ``"sessionId": null``; every other event
    drops unset optional fields.
    """
    keep_none = isinstance(event, DoneEvent)
    return event.model_dump_json(by_alias=True, exclude_none=not keep_none) + "\n"
