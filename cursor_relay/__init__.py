"""
Cursor Relay — HTTP session orchestrator for the Cursor agent CLI.

Quick start::

    from cursor_relay import create_relay_app
    from cursor_relay.platform.config import RelaySettings

    app = create_relay_app(RelaySettings.from_env())

To drive a different agent CLI, subclass ``AgentBridge`` and pass a
``bridge_factory``::

    from cursor_relay import AgentBridge, FrameworkCapabilities

    class MyBridge(AgentBridge):
        def capabilities(self):
            return FrameworkCapabilities(framework="my-agent")
        async def send(self, conversation_id, content, image_paths=()): ...
        async def stop(self, conversation_id): ...
"""

from cursor_relay.app import add_relay_endpoints, create_relay_app, run_relay_app
from cursor_relay.bridge import AgentBridge, FrameworkCapabilities

__all__ = [
    "create_relay_app",
    "run_relay_app",
    "add_relay_endpoints",
    "AgentBridge",
    "FrameworkCapabilities",
]
