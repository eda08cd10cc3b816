"""Tests for ConversationStore (SQLite via aiosqlite)."""

import pytest

from cursor_relay.store import ConversationNotFoundError


@pytest.mark.asyncio
class TestConversationStore:
    async def test_project_and_conversation_roundtrip(self, store, workspace):
        project = await store.create_project("demo", str(workspace))
        chat = await store.create_conversation(project.id)

        assert (await store.get_project(project.id)).path == str(workspace)
        assert [p.id for p in await store.list_projects()] == [project.id]
        fetched = await store.get_conversation(chat.id)
        assert fetched.project_id == project.id
        assert fetched.title is None
        assert fetched.session_id is None

    async def test_messages_in_order_with_json_fields(self, store, conversation):
        await store.add_message(conversation.id, "user", "look", image_paths=["u1/a.png"])
        await store.add_message(
            conversation.id,
            "assistant",
            "done",
            blocks=[{"type": "text", "content": "done"}],
        )

        messages = await store.list_messages(conversation.id)
        assert [m.role for m in messages] == ["user", "assistant"]
        user, assistant = (m.to_dict() for m in messages)
        assert user["imagePaths"] == ["u1/a.png"]
        assert "blocks" not in user
        assert assistant["blocks"] == [{"type": "text", "content": "done"}]
        assert await store.count_messages(conversation.id, role="user") == 1
        assert await store.count_messages(conversation.id) == 2

    async def test_update_title_and_session(self, store, conversation):
        assert await store.set_title(conversation.id, "Hello")
        assert await store.set_session_id(conversation.id, "sess-9")
        chat = (await store.get_conversation(conversation.id)).to_dict()
        assert chat["title"] == "Hello"
        assert chat["sessionId"] == "sess-9"

    async def test_update_missing_conversation(self, store):
        assert await store.set_session_id("nope", "s") is False

    async def test_add_message_to_deleted_conversation(self, store, conversation):
        assert await store.delete_conversation(conversation.id)
        with pytest.raises(ConversationNotFoundError):
            await store.add_message(conversation.id, "assistant", "late")

    async def test_delete_cascades_messages(self, store, conversation):
        await store.add_message(conversation.id, "user", "hi")
        await store.delete_conversation(conversation.id)
        assert await store.list_messages(conversation.id) == []
        assert await store.delete_conversation(conversation.id) is False
