"""
SQLAlchemy ORM models for the relay's conversation database.

Projects own conversations, conversations own messages; deletes cascade in
the database (``ON DELETE CASCADE`` with SQLite foreign keys enabled).
Timestamps are ISO-8601 UTC strings.
"""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cursor_relay.platform.utils import new_id, timestamp


class Base(DeclarativeBase):
    pass


class Project(Base):
    """A workspace directory the agent runs in."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    path: Mapped[str] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(String(40), default=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "createdAt": self.created_at,
        }


class Conversation(Base):
    """A chat thread; ``session_id`` is the agent's resume token."""

    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=timestamp)
    updated_at: Mapped[str] = mapped_column(String(40), default=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "sessionId": self.session_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class Message(Base):
    """One user or assistant turn.

    ``blocks`` holds the assistant's ordered display blocks as JSON and
    ``image_paths`` the user's attachment references, also as JSON.
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    chat_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("chats.id", ondelete="CASCADE"), index=True
    )
    role: Mapped[str] = mapped_column(String(16))
    content: Mapped[str] = mapped_column(Text, default="")
    blocks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_paths: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=timestamp, index=True)

    def block_list(self) -> List[Dict[str, Any]]:
        if not self.blocks:
            return []
        try:
            data = json.loads(self.blocks)
        except json.JSONDecodeError:
            return []
        return data if isinstance(data, list) else []

    def image_path_list(self) -> List[str]:
        if not self.image_paths:
            return []
        try:
            data = json.loads(self.image_paths)
        except json.JSONDecodeError:
            return []
        return [p for p in data if isinstance(p, str)] if isinstance(data, list) else []

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "chatId": self.chat_id,
            "role": self.role,
            "content": self.content,
            "createdAt": self.created_at,
        }
        if self.role == "assistant":
            out["blocks"] = self.block_list()
        else:
            out["imagePaths"] = self.image_path_list()
        return out
