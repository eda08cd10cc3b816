"""
In-flight agent invocations and their manager.

Each ``Invocation`` owns one agent process inside its own ``asyncio.Task``.
HTTP handlers never read the process; they subscribe to the invocation and
receive events through plain ``asyncio.Queue`` objects.  A subscriber that
goes away (client disconnect) only loses its queue; the process keeps
running and its output is still persisted.

Usage::

    manager = InvocationManager()
    invocation = manager.start(Invocation(conversation_id, ...))

    # From a request handler (any async context):
    async for event in invocation.events():
        ...

    # Stop button:
    await manager.stop(conversation_id)

    # On server shutdown:
    await manager.shutdown()
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from cursor_stream import (
    DoneEvent,
    ErrorEvent,
    LineBuffer,
    StreamEvent,
    StreamNormalizer,
    TitleEvent,
    dump_blocks,
)

from cursor_relay.bridges.cursor.launcher import AgentLauncher, LaunchError, kill_process
from cursor_relay.bridges.cursor.title import first_of, generate_title
from cursor_relay.platform.utils import new_id, redact_secrets
from cursor_relay.store import ConversationNotFoundError, ConversationStore

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536
STDERR_BUFFER_LIMIT = 65536
STDERR_EXCERPT_CHARS = 2000

# Sentinel that tells a subscriber the invocation has finished.
_CLOSED = None

_sequence = itertools.count()


@dataclass
class TitleRequest:
    """Generate a title from *message* once the invocation has persisted."""

    message: str
    timeout: float


class Invocation:
    """One agent process for one user message.

    The task is created by :meth:`start` and runs until the process closes.
    Events are published to every subscriber and kept as a history so late
    subscribers get a full replay.  ``done`` is always the last event.
    """

    def __init__(
        self,
        conversation_id: str,
        *,
        launcher: AgentLauncher,
        store: ConversationStore,
        prompt: str,
        workspace: str,
        resume_session_id: Optional[str] = None,
        title_request: Optional[TitleRequest] = None,
    ):
        self.id = new_id()
        self.sequence = next(_sequence)
        self.conversation_id = conversation_id
        self._launcher = launcher
        self._store = store
        self._prompt = prompt
        self._workspace = workspace
        self._resume_session_id = resume_session_id
        self._title_request = title_request

        self.normalizer = StreamNormalizer()
        self.process: Optional[asyncio.subprocess.Process] = None
        self.stopped = False
        self.history: list[StreamEvent] = []

        self._stderr = bytearray()
        self._subscribers: set[asyncio.Queue] = set()
        self._task: Optional[asyncio.Task] = None
        self._finished = False

    # ── lifecycle ──

    def start(self) -> asyncio.Task:
        """Spawn the background task that owns the agent process."""
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"invocation-{self.id}")
            logger.info(
                f"[Invocation] Started {self.id} for conversation={self.conversation_id}"
            )
        return self._task

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def session_id(self) -> Optional[str]:
        return self.normalizer.session_id

    def stop(self) -> bool:
        """Kill the process.  Output produced so far is still persisted."""
        self.stopped = True
        killed = kill_process(self.process)
        if killed:
            logger.info(f"[Invocation] Stopped {self.id} (pid={self.process.pid})")
        return killed

    async def wait(self) -> None:
        if self._task is not None:
            await asyncio.shield(self._task)

    # ── subscribers ──

    def subscribe(self) -> asyncio.Queue:
        """Return a queue pre-filled with the history, then fed live events."""
        queue: asyncio.Queue = asyncio.Queue()
        for event in self.history:
            queue.put_nowait(event)
        if self._finished:
            queue.put_nowait(_CLOSED)
        else:
            self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Replay, then follow, this invocation's events until ``done``."""
        queue = self.subscribe()
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self.unsubscribe(queue)

    def _publish(self, event: StreamEvent) -> None:
        self.history.append(event)
        for queue in list(self._subscribers):
            queue.put_nowait(event)

    def _close_subscribers(self) -> None:
        self._finished = True
        for queue in list(self._subscribers):
            queue.put_nowait(_CLOSED)
        self._subscribers.clear()

    # ── background task ──

    async def _run(self) -> None:
        try:
            await self._execute()
        except asyncio.CancelledError:
            kill_process(self.process)
            raise
        except Exception as exc:
            logger.error(f"[Invocation] {self.id} failed: {exc}", exc_info=True)
            self._publish(ErrorEvent(error=str(exc)))
        finally:
            self._publish(DoneEvent(session_id=self.session_id))
            self._close_subscribers()
            logger.info(
                f"[Invocation] Finished {self.id} "
                f"(blocks={len(self.normalizer.blocks)}, session={self.session_id})"
            )

    async def _execute(self) -> None:
        try:
            self.process = await self._launcher.spawn(
                self._prompt, self._workspace, self._resume_session_id
            )
        except LaunchError as exc:
            self._publish(ErrorEvent(error=str(exc)))
            return

        if self.stopped:
            kill_process(self.process)

        stderr_task = asyncio.create_task(self._drain_stderr())
        pump_error: Optional[Exception] = None
        try:
            try:
                await self._pump_stdout()
            except Exception as exc:
                # Unread stdout would block the agent; output so far is still persisted.
                logger.error(f"[Invocation] {self.id} stream failed: {exc}", exc_info=True)
                pump_error = exc
                kill_process(self.process)
            returncode = await self.process.wait()
            await stderr_task
        except BaseException:
            stderr_task.cancel()
            raise

        if pump_error is not None:
            self._publish(ErrorEvent(error=str(pump_error)))
        self._report_exit(returncode)
        await self._persist()
        await self._synthesize_title()

    async def _pump_stdout(self) -> None:
        buffer = LineBuffer()
        stdout = self.process.stdout
        while True:
            chunk = await stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in buffer.feed(chunk):
                self._handle_line(line)

        tail = buffer.flush()
        if tail:
            self._handle_line(tail)
        for event in self.normalizer.finalize():
            self._publish(event)

    def _handle_line(self, line: str) -> None:
        try:
            events = self.normalizer.process_line(line)
        except Exception as exc:
            logger.warning(f"[Invocation] {self.id} skipped unparseable line: {exc}")
            return
        for event in events:
            self._publish(event)

    async def _drain_stderr(self) -> None:
        stderr = self.process.stderr
        while True:
            chunk = await stderr.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            room = STDERR_BUFFER_LIMIT - len(self._stderr)
            if room > 0:
                self._stderr.extend(chunk[:room])

    def _report_exit(self, returncode: int) -> None:
        if returncode == 0:
            return

        stderr_text = self._stderr.decode("utf-8", errors="replace")
        logger.warning(
            f"[Invocation] {self.id} exited with code {returncode}"
            f"{' (stopped)' if self.stopped else ''}: {redact_secrets(stderr_text[:500])}"
        )
        if self.session_id or self.normalizer.has_text():
            return
        self._publish(
            ErrorEvent(
                error=(
                    f"Cursor CLI exited with code {returncode}. "
                    f"stderr: {stderr_text[:STDERR_EXCERPT_CHARS]}"
                )
            )
        )

    async def _persist(self) -> None:
        """Write the assistant message and session id, at most once."""
        text = self.normalizer.final_text()
        blocks = self.normalizer.blocks

        if text or blocks:
            try:
                await self._store.add_message(
                    self.conversation_id, "assistant", text, blocks=dump_blocks(blocks)
                )
            except ConversationNotFoundError:
                logger.debug(
                    f"[Invocation] Conversation {self.conversation_id} deleted, "
                    "assistant message dropped"
                )
                return
            except Exception as exc:
                logger.error(f"[Invocation] Failed to persist {self.id}: {exc}", exc_info=True)

        if self.session_id:
            try:
                updated = await self._store.set_session_id(self.conversation_id, self.session_id)
            except Exception as exc:
                logger.error(
                    f"[Invocation] Failed to store session id for {self.id}: {exc}",
                    exc_info=True,
                )
                return
            if not updated:
                logger.debug(f"[Invocation] Conversation {self.conversation_id} gone")

    async def _synthesize_title(self) -> None:
        request = self._title_request
        if request is None:
            return

        try:
            title = await first_of(
                generate_title(self._launcher, request.message, self._workspace),
                request.timeout,
            )
        except Exception as exc:
            logger.warning(f"[Invocation] Title generation failed: {exc}")
            return

        if not title:
            logger.debug(f"[Invocation] No title for conversation={self.conversation_id}")
            return

        try:
            if not await self._store.set_title(self.conversation_id, title):
                return
        except Exception as exc:
            logger.error(f"[Invocation] Failed to store title: {exc}", exc_info=True)
            return
        self._publish(TitleEvent(title=title))


class InvocationManager:
    """Registry of in-flight invocations, keyed by conversation id.

    Concurrent sends to one conversation each get their own invocation; all
    of them are stopped together.
    """

    def __init__(self, shutdown_timeout: float = 10.0) -> None:
        self._invocations: dict[str, set[Invocation]] = {}
        self._shutdown_timeout = shutdown_timeout

    def start(self, invocation: Invocation) -> Invocation:
        self._invocations.setdefault(invocation.conversation_id, set()).add(invocation)
        task = invocation.start()
        task.add_done_callback(lambda _t: self._forget(invocation))
        return invocation

    def _forget(self, invocation: Invocation) -> None:
        active = self._invocations.get(invocation.conversation_id)
        if active is None:
            return
        active.discard(invocation)
        if not active:
            del self._invocations[invocation.conversation_id]
        logger.debug(f"[InvocationManager] Removed invocation {invocation.id}")

    def active(self, conversation_id: str) -> list[Invocation]:
        return list(self._invocations.get(conversation_id, ()))

    def latest(self, conversation_id: str) -> Optional[Invocation]:
        """The most recently started in-flight invocation, if any."""
        active = [i for i in self.active(conversation_id) if not i.finished]
        if not active:
            return None
        return max(active, key=lambda i: i.sequence)

    def in_flight_count(self) -> int:
        return sum(len(v) for v in self._invocations.values())

    async def stop(self, conversation_id: str) -> int:
        """Kill every in-flight invocation of *conversation_id*."""
        stopped = 0
        for invocation in self.active(conversation_id):
            invocation.stop()
            stopped += 1
        logger.info(
            f"[InvocationManager] Stop conversation={conversation_id}: {stopped} invocation(s)"
        )
        return stopped

    async def shutdown(self) -> None:
        """Kill all invocations and wait (bounded) for them to persist."""
        invocations = [i for group in self._invocations.values() for i in group]
        if not invocations:
            return
        for invocation in invocations:
            invocation.stop()

        tasks = [i.task for i in invocations if i.task is not None]
        _, pending = await asyncio.wait(tasks, timeout=self._shutdown_timeout)
        for task in pending:
            logger.warning(
                f"[InvocationManager] {task.get_name()} did not finish in time, cancelling"
            )
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("[InvocationManager] All invocations shut down")
