"""
Cursor Relay — FastAPI application factory.

Provides three public APIs:

- ``create_relay_app(settings)`` — creates a fully wired FastAPI app with
  lifespan (store, bridge, shutdown) and all endpoints.

- ``run_relay_app(app)`` — creates the app if needed AND starts the uvicorn
  server.  One-liner entry point.

- ``add_relay_endpoints(app)`` — lower-level: registers only the endpoint
  routers on an existing app (caller owns the lifespan and must set
  ``app.state.store`` and ``app.state.bridge``).

Usage::

    from cursor_relay import create_relay_app, run_relay_app
    from cursor_relay.platform.config import RelaySettings

    run_relay_app(create_relay_app(RelaySettings.from_env()))
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI

from cursor_relay.bridge import AgentBridge
from cursor_relay.platform.config import RelaySettings
from cursor_relay.store import ConversationStore

logger = logging.getLogger(__name__)

BridgeFactory = Callable[[ConversationStore, RelaySettings], AgentBridge]


def _default_bridge(store: ConversationStore, settings: RelaySettings) -> AgentBridge:
    from cursor_relay.bridges.cursor import CursorBridge

    return CursorBridge(store, settings)


# ------------------------------------------------------------------
# High-level: create_relay_app
# ------------------------------------------------------------------


def create_relay_app(
    settings: Optional[RelaySettings] = None,
    *,
    bridge_factory: Optional[BridgeFactory] = None,
    title: str = "Cursor Relay",
    version: str = "0.1.0",
    enable_capabilities: bool = True,
) -> FastAPI:
    """Create a fully wired FastAPI application.

    1. **Startup** — opens the ``ConversationStore`` (creating tables) and
       builds the bridge.
    2. **Request handling** — endpoints read ``app.state.store`` and
       ``app.state.bridge``.
    3. **Shutdown** — ``bridge.shutdown()`` kills in-flight invocations and
       waits for them to persist, then the engine is disposed.

    Args:
        settings: Resolved settings (default: ``RelaySettings.from_env()``).
        bridge_factory: Builds the bridge from the store and settings
            (default: ``CursorBridge``).
        title: FastAPI application title.
        version: Application version string.
        enable_capabilities: Register ``GET /api/capabilities``.
    """
    settings = settings or RelaySettings.from_env()
    make_bridge = bridge_factory or _default_bridge

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Initializing Cursor relay (cli={settings.cli.cli_path})")

        store = ConversationStore(settings.database_url)
        await store.init()
        bridge = make_bridge(store, settings)

        app.state.settings = settings
        app.state.store = store
        app.state.bridge = bridge

        caps = bridge.capabilities()
        logger.info(f"Cursor relay ready: framework={caps.framework}")

        yield

        await bridge.shutdown()
        await store.close()
        logger.info("Cursor relay shut down")

    app = FastAPI(title=title, version=version, lifespan=lifespan)
    add_relay_endpoints(app, enable_capabilities=enable_capabilities)
    return app


# ------------------------------------------------------------------
# Low-level: add_relay_endpoints
# ------------------------------------------------------------------


def add_relay_endpoints(app: FastAPI, *, enable_capabilities: bool = True) -> None:
    """Register the relay's routers on an existing FastAPI app."""
    from cursor_relay.endpoints.chats import router as chats_router
    from cursor_relay.endpoints.health import router as health_router
    from cursor_relay.endpoints.messages import router as messages_router
    from cursor_relay.endpoints.projects import router as projects_router
    from cursor_relay.endpoints.status import router as status_router

    app.include_router(health_router, prefix="/api")
    app.include_router(status_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(chats_router, prefix="/api")
    app.include_router(messages_router, prefix="/api")

    if enable_capabilities:
        from cursor_relay.endpoints.capabilities import router as cap_router

        app.include_router(cap_router, prefix="/api")

    logger.debug("Relay endpoints registered")


# ------------------------------------------------------------------
# One-liner: run_relay_app
# ------------------------------------------------------------------


def run_relay_app(
    app: Optional[FastAPI] = None,
    *,
    settings: Optional[RelaySettings] = None,
    host: str | None = None,
    port: int | None = None,
    log_level: str | None = None,
) -> None:
    """Start the uvicorn server.

    Args:
        app: A pre-built app (default: ``create_relay_app(settings)``).
        settings: Used for the app and the host/port/log-level defaults.
        host: Bind address (default: ``RELAY_HOST`` or ``127.0.0.1``).
        port: Bind port (default: ``RELAY_PORT`` or ``3001``).
        log_level: Uvicorn log level (default: ``RELAY_LOG_LEVEL`` or ``info``).
    """
    import uvicorn

    settings = settings or RelaySettings.from_env()
    if app is None:
        app = create_relay_app(settings)

    resolved_host = host or settings.host
    resolved_port = port or settings.port

    logger.info(f"Starting on {resolved_host}:{resolved_port}")
    uvicorn.run(
        app,
        host=resolved_host,
        port=resolved_port,
        log_level=log_level or settings.log_level,
    )
