"""Chat endpoints — read, rename / set session id, delete."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdateChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


@router.get("/chats/{chat_id}")
async def get_chat(chat_id: str, request: Request):
    chat = await request.app.state.store.get_conversation(chat_id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat.to_dict()


@router.patch("/chats/{chat_id}")
async def update_chat(chat_id: str, body: UpdateChatRequest, request: Request):
    store = request.app.state.store
    fields = {}
    if "title" in body.model_fields_set:
        fields["title"] = body.title.strip() if body.title else None
    if "session_id" in body.model_fields_set:
        fields["session_id"] = body.session_id or None

    if not await store.update_conversation(chat_id, **fields):
        raise HTTPException(status_code=404, detail="Chat not found")
    chat = await store.get_conversation(chat_id)
    return chat.to_dict()


@router.delete("/chats/{chat_id}")
async def delete_chat(chat_id: str, request: Request):
    if not await request.app.state.store.delete_conversation(chat_id):
        raise HTTPException(status_code=404, detail="Chat not found")
    logger.info(f"Deleted chat {chat_id}")
    return {"ok": True}
