"""End-to-end tests for the relay HTTP API (FastAPI TestClient + mock agent)."""

import json

import pytest
from fastapi.testclient import TestClient

from cursor_relay import AgentBridge, FrameworkCapabilities, create_relay_app


@pytest.fixture
def client(relay_settings):
    app = create_relay_app(relay_settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def project(client, workspace):
    resp = client.post("/api/projects", json={"name": "demo", "path": str(workspace)})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def chat(client, project):
    resp = client.post(f"/api/projects/{project['id']}/chats")
    assert resp.status_code == 201
    return resp.json()


def ndjson(resp) -> list[dict]:
    return [json.loads(ln) for ln in resp.text.splitlines() if ln.strip()]


# ------------------------------------------------------------------
# Bridge contract
# ------------------------------------------------------------------


class TestAgentBridgeABC:
    def test_cannot_instantiate_directly(self):
        with pytest.raises(TypeError):
            AgentBridge()

    def test_minimal_subclass_defaults(self):
        class MinimalBridge(AgentBridge):
            def capabilities(self):
                return FrameworkCapabilities(framework="test")

            async def send(self, conversation_id, content, image_paths=()):
                raise NotImplementedError  # pragma: no cover

            async def stop(self, conversation_id):
                return 0

        bridge = MinimalBridge()
        assert bridge.capabilities().framework == "test"
        assert bridge.attach("c") is None
        assert bridge.in_flight_count() == 0


# ------------------------------------------------------------------
# Basic endpoints
# ------------------------------------------------------------------


class TestBasicEndpoints:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"ok": True, "inFlight": 0}

    def test_cursor_status(self, client):
        assert client.get("/api/cursor/status").json() == {"ok": True}

    def test_capabilities(self, client):
        caps = client.get("/api/capabilities").json()
        assert caps["framework"] == "cursor-agent-cli"
        assert caps["session_persistence"] is True
        assert "stop" in caps["platform_features"]
        assert "attach" in caps["platform_features"]


class TestProjectsAndChats:
    def test_project_requires_directory(self, client, tmp_path):
        resp = client.post("/api/projects", json={"name": "x", "path": str(tmp_path / "nope")})
        assert resp.status_code == 400

    def test_list_and_get(self, client, project, chat):
        assert [p["id"] for p in client.get("/api/projects").json()] == [project["id"]]
        assert client.get(f"/api/projects/{project['id']}").json()["name"] == "demo"
        chats = client.get(f"/api/projects/{project['id']}/chats").json()
        assert [c["id"] for c in chats] == [chat["id"]]
        assert client.get("/api/projects/missing").status_code == 404

    def test_patch_chat(self, client, chat):
        resp = client.patch(f"/api/chats/{chat['id']}", json={"title": "Renamed", "sessionId": "s-1"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"
        assert resp.json()["sessionId"] == "s-1"

        resp = client.patch(f"/api/chats/{chat['id']}", json={"title": "Only title"})
        assert resp.json()["sessionId"] == "s-1"

    def test_delete_chat(self, client, chat):
        assert client.delete(f"/api/chats/{chat['id']}").json() == {"ok": True}
        assert client.get(f"/api/chats/{chat['id']}").status_code == 404
        assert client.delete(f"/api/chats/{chat['id']}").status_code == 404


# ------------------------------------------------------------------
# Messages
# ------------------------------------------------------------------


class TestMessages:
    def test_send_streams_ndjson(self, client, chat):
        resp = client.post(f"/api/chats/{chat['id']}/messages", json={"content": "Hello"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/x-ndjson")
        assert resp.headers["cache-control"] == "no-cache"

        events = ndjson(resp)
        assert events[-1]["type"] == "done"
        assert events[-1]["sessionId"].startswith("mock-session-")
        assert events[-2] == {"type": "title", "title": "Mock Chat Title"}

        read = next(e["block"] for e in events if e["type"] == "block" and e["block"].get("toolName") == "read_file")
        assert read == {
            "type": "activity",
            "kind": "tool_call",
            "label": "Read file",
            "details": "path: /tmp/foo.ts",
            "toolName": "read_file",
            "args": {"path": "/tmp/foo.ts"},
        }

    def test_history_after_send(self, client, chat):
        client.post(f"/api/chats/{chat['id']}/messages", json={"content": "Hello"})
        messages = client.get(f"/api/chats/{chat['id']}/messages").json()

        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[0]["content"] == "Hello"
        assert messages[0]["imagePaths"] == []
        assert messages[1]["content"] == "[ASSISTANT_REPLY] First part. Second part. Response to your message."
        assert [b["type"] for b in messages[1]["blocks"]].count("text") == 2

        chat_row = client.get(f"/api/chats/{chat['id']}").json()
        assert chat_row["title"] == "Mock Chat Title"
        assert chat_row["sessionId"] is not None

    def test_empty_message_rejected(self, client, chat):
        resp = client.post(f"/api/chats/{chat['id']}/messages", json={"content": "", "imagePaths": []})
        assert resp.status_code == 400

    def test_unknown_chat(self, client):
        assert client.post("/api/chats/missing/messages", json={"content": "hi"}).status_code == 404
        assert client.get("/api/chats/missing/messages").status_code == 404

    def test_failure_stream_ends_with_done(self, client, chat, monkeypatch):
        monkeypatch.setenv("MOCK_AGENT_MODE", "fail")
        events = ndjson(client.post(f"/api/chats/{chat['id']}/messages", json={"content": "Hi"}))
        assert events[0]["type"] == "error"
        assert "exited with code 2" in events[0]["error"]
        assert events[-1] == {"type": "done", "sessionId": None}

    def test_stop_and_attach_without_inflight(self, client, chat):
        assert client.post(f"/api/chats/{chat['id']}/messages/stop").json() == {"ok": True, "stopped": 0}
        assert client.get(f"/api/chats/{chat['id']}/messages/stream").status_code == 404
