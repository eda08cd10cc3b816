"""Tests for the title race combinator and title generation."""

import asyncio

import pytest

from cursor_relay.bridges.cursor.launcher import AgentLauncher
from cursor_relay.bridges.cursor.title import first_of, generate_title
from cursor_relay.platform.config import AgentCliConfig


@pytest.mark.asyncio
class TestFirstOf:
    async def test_returns_result_when_fast(self):
        async def fast():
            return "title"

        assert await first_of(fast(), timeout=1.0) == "title"

    async def test_timeout_cancels_loser(self):
        cleaned_up = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            finally:
                cleaned_up.set()

        assert await first_of(slow(), timeout=0.05) is None
        assert cleaned_up.is_set()

    async def test_exception_propagates(self):
        async def broken():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await first_of(broken(), timeout=1.0)

    async def test_outer_cancel_cancels_inner(self):
        cleaned_up = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            finally:
                cleaned_up.set()

        outer = asyncio.create_task(first_of(slow(), timeout=10))
        await asyncio.sleep(0.05)
        outer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await outer
        await asyncio.wait_for(cleaned_up.wait(), timeout=1.0)


@pytest.mark.asyncio
class TestGenerateTitle:
    async def test_mock_agent_title(self, mock_cli_config, workspace):
        title = await generate_title(AgentLauncher(mock_cli_config), "Fix the bug", str(workspace))
        assert title == "Mock Chat Title"

    async def test_missing_cli_gives_none(self, workspace):
        launcher = AgentLauncher(AgentCliConfig(cli_path="/definitely/not/here/agent"))
        assert await generate_title(launcher, "hi", str(workspace)) is None
