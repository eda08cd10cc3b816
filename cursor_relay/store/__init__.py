"""Conversation persistence (SQLAlchemy async over SQLite)."""

from cursor_relay.store.models import Conversation, Message, Project
from cursor_relay.store.repository import ConversationNotFoundError, ConversationStore

__all__ = [
    "ConversationStore",
    "ConversationNotFoundError",
    "Project",
    "Conversation",
    "Message",
]
