"""
AgentBridge — abstract base class for agent-CLI bridges.

A bridge owns everything between the HTTP layer and an external coding
agent: spawning invocations, stream normalization, persistence and
cancellation.  Endpoints only talk to ``app.state.bridge``.

Minimal implementation example::

    class MyBridge(AgentBridge):
        def capabilities(self) -> FrameworkCapabilities:
            return FrameworkCapabilities(framework="my-agent")

        async def send(self, conversation_id, content, image_paths=()):
            ...  # returns a running Invocation

        async def stop(self, conversation_id) -> int:
            return 0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from cursor_relay.bridges.cursor.session import Invocation


@dataclass
class FrameworkCapabilities:
    """Declares what an agent bridge supports.

    Used by the ``/api/capabilities`` endpoint so clients know which
    features to show.
    """

    framework: str
    agent_features: list[str] = field(default_factory=list)
    file_system: bool = False
    session_persistence: bool = False
    model: Optional[str] = None


class AgentBridge(ABC):
    """Abstract bridge between the relay's HTTP API and an agent CLI.

    **Required** (must implement):

    - ``capabilities()`` — declares what the bridge supports
    - ``send()`` — starts an invocation for one user message
    - ``stop()`` — kills a conversation's in-flight invocations

    **Lifecycle** (override as needed):

    - ``attach()`` — returns a conversation's in-flight invocation
    - ``check_status()`` — agent CLI availability / auth check
    - ``in_flight_count()`` — number of running invocations
    - ``shutdown()`` — called on server shutdown for cleanup
    """

    # ------------------------------------------------------------------
    # Required (abstract)
    # ------------------------------------------------------------------

    @abstractmethod
    def capabilities(self) -> FrameworkCapabilities:
        """Return the capabilities of this bridge."""
        ...

    @abstractmethod
    async def send(
        self,
        conversation_id: str,
        content: str,
        image_paths: Sequence[str] = (),
    ) -> "Invocation":
        """Store the user message and start an invocation for it.

        The returned invocation runs on its own task; callers subscribe to
        it for events.  Its lifetime is independent of the caller.
        """
        ...

    @abstractmethod
    async def stop(self, conversation_id: str) -> int:
        """Kill every in-flight invocation of a conversation.

        Returns:
            How many invocations were signalled.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle (override in subclasses as needed)
    # ------------------------------------------------------------------

    def attach(self, conversation_id: str) -> Optional["Invocation"]:
        """Return the newest in-flight invocation of a conversation, if any."""
        return None

    async def check_status(self) -> dict:
        """Report whether the agent CLI is usable.

        Default: always ok.
        """
        return {"ok": True}

    def in_flight_count(self) -> int:
        return 0

    async def shutdown(self) -> None:
        """Graceful shutdown — stop invocations, release resources.

        Called when the FastAPI app is shutting down.
        """
        pass
