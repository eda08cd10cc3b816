"""GET /cursor/status — agent CLI availability check."""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/cursor/status")
async def cursor_status(request: Request):
    bridge = request.app.state.bridge
    status = await bridge.check_status()
    if not status.get("ok"):
        logger.info(f"Cursor CLI status check failed: {status.get('error')}")
    return status
