"""
Shared fixtures for relay and stream-normalizer tests.
"""

import json
import shlex
import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from cursor_relay.platform.config import AgentCliConfig, RelaySettings
from cursor_relay.store import ConversationStore

MOCK_AGENT = Path(__file__).parent / "mock_cursor_agent.py"


# ------------------------------------------------------------------
# Raw agent line factories
# ------------------------------------------------------------------


def line(obj: dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False)


def make_init(session_id: str = "sess-1") -> dict:
    return {"type": "system", "subtype": "init", "session_id": session_id}


def make_assistant(text: str, session_id: str = "sess-1") -> dict:
    return {
        "type": "assistant",
        "message": {"role": "assistant", "content": [{"type": "text", "text": text}]},
        "session_id": session_id,
    }


def make_bracketed_tool(text: str = "[Tool: read_file path=/tmp/foo.ts]") -> dict:
    return {
        "type": "tool_call",
        "subtype": "started",
        "call_id": "c-1",
        "message": {"content": [{"type": "text", "text": text}]},
    }


def make_native_tool(key: str = "readToolCall", args: dict | None = None, **extra) -> dict:
    payload = {"args": args if args is not None else {"path": "/tmp/foo.ts"}}
    payload.update(extra)
    return {"type": "tool_call", "subtype": "started", "tool_call": {key: payload}}


def make_result(result: str, session_id: str = "sess-1") -> dict:
    return {"type": "result", "subtype": "success", "result": result, "session_id": session_id}


# ------------------------------------------------------------------
# Mock agent CLI
# ------------------------------------------------------------------


def mock_cli_path() -> str:
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(MOCK_AGENT))}"


@pytest.fixture
def mock_cli_config() -> AgentCliConfig:
    return AgentCliConfig(cli_path=mock_cli_path())


@pytest.fixture
def workspace(tmp_path) -> Path:
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def relay_settings(tmp_path, mock_cli_config) -> RelaySettings:
    return RelaySettings(
        cli=mock_cli_config,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}",
        attachments_path=str(tmp_path / "attachments"),
        title_timeout_ms=3000,
    )


@pytest_asyncio.fixture
async def store(relay_settings):
    s = ConversationStore(relay_settings.database_url)
    await s.init()
    yield s
    await s.close()


@pytest_asyncio.fixture
async def conversation(store, workspace):
    project = await store.create_project("demo", str(workspace))
    return await store.create_conversation(project.id)
