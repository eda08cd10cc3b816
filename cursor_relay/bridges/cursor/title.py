"""
Title synthesis for new conversations.

A short, tool-free agent invocation summarizes the first user message.  It
runs against a deadline: whichever finishes first (title or timeout) wins,
and a losing title invocation is cancelled and its process killed.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from cursor_stream import LineBuffer, StreamNormalizer

from cursor_relay.bridges.cursor.launcher import AgentLauncher, LaunchError, kill_process
from cursor_relay.platform.prompts import build_title_prompt, clean_title

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def first_of(awaitable: Awaitable[T], timeout: float) -> Optional[T]:
    """Await *awaitable* for at most *timeout* seconds.

    Returns its result, or ``None`` if the deadline came first. In that case
    the awaitable is cancelled and waited on, so its cleanup has run by the
    time this returns.  Exceptions from the awaitable propagate.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise
    if task in done:
        return task.result()

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    return None


async def generate_title(launcher: AgentLauncher, message: str, workspace: str) -> Optional[str]:
    """Ask the agent for a title; ``None`` if it produced nothing usable."""
    try:
        process = await launcher.spawn(build_title_prompt(message), workspace)
    except LaunchError as exc:
        logger.info(f"Title generation skipped: {exc}")
        return None

    normalizer = StreamNormalizer()
    buffer = LineBuffer()
    try:
        while True:
            chunk = await process.stdout.read(65536)
            if not chunk:
                break
            for line in buffer.feed(chunk):
                normalizer.process_line(line)
        tail = buffer.flush()
        if tail:
            normalizer.process_line(tail)
        await process.wait()
    finally:
        # Cancelled by the deadline, or a read failed.
        if kill_process(process):
            logger.debug(f"Killed title process pid={process.pid}")
            await process.wait()

    return clean_title(normalizer.final_text())
