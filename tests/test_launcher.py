"""Tests for AgentLauncher argument building, spawning and status checks."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cursor_relay.bridges.cursor.launcher import (
    CLI_NOT_FOUND_MESSAGE,
    AgentCliNotFoundError,
    AgentLauncher,
    WorkspaceNotFoundError,
)
from cursor_relay.platform.config import AgentCliConfig


class TestBuildArgs:
    def test_default_binary_with_subcommand(self):
        launcher = AgentLauncher(AgentCliConfig())
        assert launcher.build_args("/w") == [
            "cursor",
            "agent",
            "--print",
            "--output-format",
            "stream-json",
            "--workspace",
            "/w",
            "--trust",
        ]

    def test_agent_binary_resume_and_model(self):
        launcher = AgentLauncher(AgentCliConfig(cli_path="/usr/bin/agent", model="sonnet"))
        args = launcher.build_args("/w", resume_session_id="sess-1")
        assert args[0] == "/usr/bin/agent"
        assert "agent" not in args[1:]
        assert args[-4:] == ["--resume", "sess-1", "--model", "sonnet"]


def _fake_process(returncode=0, stdout=b"", stderr=b""):
    process = MagicMock()
    process.pid = 1234
    process.returncode = returncode
    process.stdin = MagicMock()
    process.stdin.drain = AsyncMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    return process


@pytest.mark.asyncio
class TestSpawn:
    async def test_writes_prompt_and_closes_stdin(self, workspace):
        process = _fake_process()
        launcher = AgentLauncher(AgentCliConfig(cli_path="agent"))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            result = await launcher.spawn("hello", str(workspace))

        assert result is process
        process.stdin.write.assert_called_once_with(b"hello")
        process.stdin.close.assert_called_once()
        assert exec_mock.call_args.kwargs["cwd"] == str(workspace)
        assert exec_mock.call_args.args[0] == "agent"

    async def test_missing_binary(self, workspace):
        launcher = AgentLauncher(AgentCliConfig(cli_path="/definitely/not/here/agent"))
        with pytest.raises(AgentCliNotFoundError) as exc_info:
            await launcher.spawn("hi", str(workspace))
        assert "Cursor CLI not found" in str(exc_info.value)

    async def test_missing_workspace(self, tmp_path):
        launcher = AgentLauncher(AgentCliConfig())
        with pytest.raises(WorkspaceNotFoundError):
            await launcher.spawn("hi", str(tmp_path / "gone"))

    async def test_broken_stdin_is_tolerated(self, workspace):
        process = _fake_process()
        process.stdin.drain = AsyncMock(side_effect=BrokenPipeError())
        launcher = AgentLauncher(AgentCliConfig())
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            assert await launcher.spawn("hi", str(workspace)) is process
        process.stdin.close.assert_called_once()


@pytest.mark.asyncio
class TestCheckStatus:
    async def test_ok_with_mock_cli(self, mock_cli_config):
        assert await AgentLauncher(mock_cli_config).check_status() == {"ok": True}

    async def test_failure_reports_cli_output(self, mock_cli_config, monkeypatch):
        monkeypatch.setenv("MOCK_STATUS_FAIL", "1")
        status = await AgentLauncher(mock_cli_config).check_status()
        assert status == {"ok": False, "error": "Not logged in"}

    async def test_api_key_overrides_failure(self, mock_cli_config, monkeypatch):
        monkeypatch.setenv("MOCK_STATUS_FAIL", "1")
        mock_cli_config.api_key = "key"
        assert (await AgentLauncher(mock_cli_config).check_status())["ok"] is True

    async def test_api_key_skips_spawning(self):
        config = AgentCliConfig(cli_path="/definitely/not/here/agent", api_key="key")
        with patch("asyncio.create_subprocess_exec", AsyncMock()) as spawn:
            assert await AgentLauncher(config).check_status() == {"ok": True}
        spawn.assert_not_called()

    async def test_missing_binary(self):
        launcher = AgentLauncher(AgentCliConfig(cli_path="/definitely/not/here/agent"))
        assert await launcher.check_status() == {"ok": False, "error": CLI_NOT_FOUND_MESSAGE}

    async def test_timeout(self):
        process = _fake_process(returncode=None)
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        launcher = AgentLauncher(AgentCliConfig())
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            status = await launcher.check_status()
        assert status["ok"] is False
        process.kill.assert_called_once()
