"""GET /capabilities — reports bridge and relay capabilities."""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter()

# Map of route paths to relay feature names
_ROUTE_TO_FEATURE = {
    "/api/chats/{chat_id}/messages/stop": "stop",
    "/api/chats/{chat_id}/messages/stream": "attach",
    "/api/cursor/status": "cli_status",
    "/api/projects": "projects",
}


def _detect_platform_features(app) -> list[str]:
    """Detect relay features from registered routes."""
    features = set()
    for route in app.routes:
        path = getattr(route, "path", "")
        if path in _ROUTE_TO_FEATURE:
            features.add(_ROUTE_TO_FEATURE[path])
    return sorted(features)


@router.get("/capabilities")
async def get_capabilities(request: Request):
    """Return the capabilities manifest from the bridge."""
    bridge = request.app.state.bridge
    caps = bridge.capabilities()

    return {
        "framework": caps.framework,
        "agent_features": caps.agent_features,
        "platform_features": _detect_platform_features(request.app),
        "file_system": caps.file_system,
        "session_persistence": caps.session_persistence,
        "model": caps.model,
    }
