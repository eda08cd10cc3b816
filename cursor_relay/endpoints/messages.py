"""Message endpoints — history, send (NDJSON stream), attach and stop."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from cursor_stream import NDJSON_CONTENT_TYPE, DoneEvent, ErrorEvent, encode_event

from cursor_relay.bridges.cursor import InvalidMessageError, ProjectNotFoundError
from cursor_relay.store import ConversationNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()

_STREAM_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    image_paths: Optional[List[str]] = Field(default=None, alias="imagePaths")


def _stream_invocation(invocation) -> StreamingResponse:
    """Relay an invocation's events as NDJSON.

    The response only subscribes: if the client goes away the generator is
    closed and unsubscribes, while the invocation keeps running.
    """

    async def event_stream():
        finished = False
        try:
            async for event in invocation.events():
                finished = isinstance(event, DoneEvent)
                yield encode_event(event)
        except Exception as e:
            logger.error(f"Error in event stream: {e}", exc_info=True)
            if not finished:
                yield encode_event(ErrorEvent(error=str(e)))
                yield encode_event(DoneEvent(session_id=invocation.session_id))

    return StreamingResponse(
        event_stream(),
        media_type=NDJSON_CONTENT_TYPE,
        headers=_STREAM_HEADERS,
    )


@router.get("/chats/{chat_id}/messages")
async def list_messages(chat_id: str, request: Request):
    store = request.app.state.store
    if await store.get_conversation(chat_id) is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    messages = await store.list_messages(chat_id)
    return [m.to_dict() for m in messages]


@router.post("/chats/{chat_id}/messages")
async def send_message(chat_id: str, body: SendMessageRequest, request: Request):
    """Send a user message; the response streams the agent's output."""
    bridge = request.app.state.bridge

    try:
        invocation = await bridge.send(chat_id, body.content, body.image_paths or [])
    except InvalidMessageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Chat not found")
    except ProjectNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")

    return _stream_invocation(invocation)


@router.get("/chats/{chat_id}/messages/stream")
async def attach_stream(chat_id: str, request: Request):
    """Attach to the chat's in-flight invocation: replay, then live events."""
    invocation = request.app.state.bridge.attach(chat_id)
    if invocation is None:
        raise HTTPException(status_code=404, detail="No message in flight")
    logger.info(f"Attach: chat={chat_id}, invocation={invocation.id}")
    return _stream_invocation(invocation)


@router.post("/chats/{chat_id}/messages/stop")
async def stop_messages(chat_id: str, request: Request):
    """Kill every in-flight invocation of the chat."""
    stopped = await request.app.state.bridge.stop(chat_id)
    return {"ok": True, "stopped": stopped}
