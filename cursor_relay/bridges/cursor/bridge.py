"""
CursorBridge — full-lifecycle AgentBridge for the Cursor agent CLI.

Owns the conversation lifecycle on the agent side:
- User message storage and prompt construction (with image notes)
- Invocation start, resume by session id, and title synthesis
- Stop, attach, status check and graceful shutdown
"""

import logging
import os
from typing import Optional, Sequence

from cursor_relay.bridge import AgentBridge, FrameworkCapabilities
from cursor_relay.bridges.cursor.launcher import AgentLauncher
from cursor_relay.bridges.cursor.session import Invocation, InvocationManager, TitleRequest
from cursor_relay.platform.config import RelaySettings
from cursor_relay.platform.prompts import build_agent_stdin
from cursor_relay.store import ConversationNotFoundError, ConversationStore

logger = logging.getLogger(__name__)


class ProjectNotFoundError(LookupError):
    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class InvalidMessageError(ValueError):
    """The message has neither text nor attachments, or a bad attachment path."""


def image_display_text(count: int) -> str:
    return f"[{count} image{'s' if count != 1 else ''} attached]"


class CursorBridge(AgentBridge):
    """Bridge between the relay's HTTP API and the Cursor agent CLI.

    One agent process per user message.  Invocations are owned by the
    ``InvocationManager``, never by the request that started them.
    """

    def __init__(
        self,
        store: ConversationStore,
        settings: Optional[RelaySettings] = None,
        *,
        launcher: Optional[AgentLauncher] = None,
        manager: Optional[InvocationManager] = None,
    ) -> None:
        self._store = store
        self._settings = settings or RelaySettings()
        self._launcher = launcher or AgentLauncher(self._settings.cli)
        self._manager = manager or InvocationManager()

    @property
    def launcher(self) -> AgentLauncher:
        return self._launcher

    @property
    def manager(self) -> InvocationManager:
        return self._manager

    # ------------------------------------------------------------------
    # AgentBridge interface
    # ------------------------------------------------------------------

    def capabilities(self) -> FrameworkCapabilities:
        return FrameworkCapabilities(
            framework="cursor-agent-cli",
            agent_features=[
                "agentic_chat",
                "backend_tool_rendering",
                "thinking",
                "image_attachments",
                "title_generation",
            ],
            file_system=True,
            session_persistence=True,
            model=self._settings.cli.model,
        )

    async def send(
        self,
        conversation_id: str,
        content: str,
        image_paths: Sequence[str] = (),
    ) -> Invocation:
        """Store the user message and start an invocation for it.

        Raises:
            InvalidMessageError: Empty message or attachment outside the root.
            ConversationNotFoundError: Unknown conversation.
            ProjectNotFoundError: The conversation's project is gone.
        """
        content = content or ""
        image_paths = [p for p in image_paths if p]
        if not content.strip() and not image_paths:
            raise InvalidMessageError("content or imagePaths required")

        absolute_images = [self.resolve_attachment(p) for p in image_paths]

        conversation = await self._store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        project = await self._store.get_project(conversation.project_id)
        if project is None:
            raise ProjectNotFoundError(conversation.project_id)

        is_first = await self._store.count_messages(conversation_id, role="user") == 0
        display = content or image_display_text(len(image_paths))
        await self._store.add_message(conversation_id, "user", display, image_paths=image_paths)

        title_request = None
        if is_first and not conversation.title and content.strip():
            title_request = TitleRequest(
                message=content, timeout=self._settings.title_timeout
            )

        invocation = Invocation(
            conversation_id,
            launcher=self._launcher,
            store=self._store,
            prompt=build_agent_stdin(content, absolute_images),
            workspace=project.path,
            resume_session_id=conversation.session_id,
            title_request=title_request,
        )
        logger.info(
            f"Send: conversation={conversation_id}, first={is_first}, "
            f"images={len(image_paths)}, resume={conversation.session_id or '-'}"
        )
        return self._manager.start(invocation)

    async def stop(self, conversation_id: str) -> int:
        return await self._manager.stop(conversation_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach(self, conversation_id: str) -> Optional[Invocation]:
        return self._manager.latest(conversation_id)

    async def check_status(self) -> dict:
        return await self._launcher.check_status()

    def in_flight_count(self) -> int:
        return self._manager.in_flight_count()

    async def shutdown(self) -> None:
        """Kill in-flight invocations and wait for their partial output to persist."""
        await self._manager.shutdown()
        logger.info("CursorBridge: shutdown complete")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_attachment(self, relative_path: str) -> str:
        """Absolute path of an attachment stored as ``uploadId/filename``."""
        root = os.path.abspath(self._settings.attachments_path)
        full = os.path.abspath(os.path.join(root, relative_path))
        if os.path.commonpath([root, full]) != root or full == root:
            raise InvalidMessageError(f"Invalid attachment path: {relative_path}")
        return full
