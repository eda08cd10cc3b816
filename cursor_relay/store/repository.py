"""
ConversationStore — all database reads and writes for the relay.

Each method opens its own short-lived session, so the store is safe to share
between request handlers and background invocations.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from cursor_relay.platform.utils import timestamp
from cursor_relay.store.database import create_engine, create_session_factory
from cursor_relay.store.models import Base, Conversation, Message, Project

logger = logging.getLogger(__name__)


class ConversationNotFoundError(LookupError):
    """The conversation row no longer exists (deleted while a write was pending)."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class ConversationStore:
    """Async repository over projects, conversations and messages."""

    def __init__(self, database_url: str, echo: bool = False):
        self._database_url = database_url
        self._engine: AsyncEngine = create_engine(database_url, echo=echo)
        self._sessions = create_session_factory(self._engine)

    async def init(self) -> None:
        """Create tables if they don't exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Conversation store initialized")

    async def close(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(self, name: str, path: str) -> Project:
        async with self._sessions() as session:
            project = Project(name=name, path=path)
            session.add(project)
            await session.commit()
            return project

    async def get_project(self, project_id: str) -> Optional[Project]:
        async with self._sessions() as session:
            return await session.get(Project, project_id)

    async def list_projects(self) -> List[Project]:
        async with self._sessions() as session:
            result = await session.execute(select(Project).order_by(Project.created_at))
            return list(result.scalars())

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(
        self, project_id: str, title: Optional[str] = None
    ) -> Conversation:
        async with self._sessions() as session:
            conversation = Conversation(project_id=project_id, title=title)
            session.add(conversation)
            await session.commit()
            return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        async with self._sessions() as session:
            return await session.get(Conversation, conversation_id)

    async def list_conversations(self, project_id: str) -> List[Conversation]:
        """Conversations of a project, most recently updated first."""
        async with self._sessions() as session:
            result = await session.execute(
                select(Conversation)
                .where(Conversation.project_id == project_id)
                .order_by(Conversation.updated_at.desc())
            )
            return list(result.scalars())

    async def update_conversation(self, conversation_id: str, **fields: Any) -> bool:
        """Update ``title`` and/or ``session_id``.  Returns False if the row is gone."""
        values = {k: v for k, v in fields.items() if k in ("title", "session_id")}
        values["updated_at"] = timestamp()
        async with self._sessions() as session:
            result = await session.execute(
                update(Conversation).where(Conversation.id == conversation_id).values(**values)
            )
            await session.commit()
            return result.rowcount > 0

    async def set_session_id(self, conversation_id: str, session_id: str) -> bool:
        return await self.update_conversation(conversation_id, session_id=session_id)

    async def set_title(self, conversation_id: str, title: str) -> bool:
        return await self.update_conversation(conversation_id, title=title)

    async def delete_conversation(self, conversation_id: str) -> bool:
        async with self._sessions() as session:
            result = await session.execute(
                delete(Conversation).where(Conversation.id == conversation_id)
            )
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        image_paths: Optional[Sequence[str]] = None,
    ) -> Message:
        """Insert a message and bump the conversation's ``updated_at``.

        Raises:
            ConversationNotFoundError: The conversation was deleted.
        """
        message = Message(
            chat_id=conversation_id,
            role=role,
            content=content,
            blocks=json.dumps(blocks) if blocks is not None else None,
            image_paths=json.dumps(list(image_paths)) if image_paths else None,
        )
        async with self._sessions() as session:
            session.add(message)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConversationNotFoundError(conversation_id) from exc

        await self.update_conversation(conversation_id)
        return message

    async def list_messages(self, conversation_id: str) -> List[Message]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Message)
                .where(Message.chat_id == conversation_id)
                .order_by(Message.created_at)
            )
            return list(result.scalars())

    async def count_messages(self, conversation_id: str, role: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(Message).where(Message.chat_id == conversation_id)
        if role is not None:
            stmt = stmt.where(Message.role == role)
        async with self._sessions() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())
