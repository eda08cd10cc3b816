"""Project endpoints — workspaces the agent runs in, and their chats."""

import logging
import os
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateProjectRequest(BaseModel):
    name: str
    path: str


class CreateChatRequest(BaseModel):
    title: Optional[str] = None


async def _require_project(request: Request, project_id: str):
    project = await request.app.state.store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("/projects", status_code=201)
async def create_project(body: CreateProjectRequest, request: Request):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")

    path = os.path.abspath(os.path.expanduser(body.path.strip()))
    if not os.path.isdir(path):
        raise HTTPException(status_code=400, detail=f"Not a directory: {path}")

    project = await request.app.state.store.create_project(name, path)
    logger.info(f"Created project {project.id} at {path}")
    return project.to_dict()


@router.get("/projects")
async def list_projects(request: Request):
    projects = await request.app.state.store.list_projects()
    return [p.to_dict() for p in projects]


@router.get("/projects/{project_id}")
async def get_project(project_id: str, request: Request):
    project = await _require_project(request, project_id)
    return project.to_dict()


@router.get("/projects/{project_id}/chats")
async def list_chats(project_id: str, request: Request):
    await _require_project(request, project_id)
    chats = await request.app.state.store.list_conversations(project_id)
    return [c.to_dict() for c in chats]


@router.post("/projects/{project_id}/chats", status_code=201)
async def create_chat(project_id: str, request: Request, body: Optional[CreateChatRequest] = None):
    await _require_project(request, project_id)
    title = body.title.strip() if body and body.title else None
    chat = await request.app.state.store.create_conversation(project_id, title=title or None)
    logger.info(f"Created chat {chat.id} in project {project_id}")
    return chat.to_dict()
