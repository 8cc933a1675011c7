"""WebSocket channel for real-time notifications."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from hirehub.api.deps import authenticate_token
from hirehub.core.errors import UnauthenticatedError
from hirehub.infrastructure.revocation import TokenRevocationStore
from hirehub.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket, token: str | None = Query(None)) -> None:
    """Authenticate with ``?token=`` then send ``{"type": "join"}`` to receive pushes."""
    try:
        identity = await authenticate_token(token, TokenRevocationStore(websocket.app.state.cache))
    except UnauthenticatedError as exc:
        logger.info("realtime_rejected", reason=exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: ConnectionRegistry = websocket.app.state.registry
    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"detail": "Invalid JSON"}})
                continue
            if isinstance(message, dict) and message.get("type") == "join":
                await registry.join(identity.user_id, websocket)
                await websocket.send_json({"event": "joined", "data": {"user_id": identity.user_id}})
            else:
                await websocket.send_json({"event": "error", "data": {"detail": "Unknown message"}})
    except WebSocketDisconnect:
        pass
    finally:
        await registry.on_disconnect(websocket)
