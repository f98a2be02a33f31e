"""WebSocket endpoint — live gallery feed for viewers.

Learn: Each viewer connects to /ws?token=JWT. The handler:
1. Authenticates via the JWT query param (required outside development)
2. Registers with the hub, which sends the initSnapshot
3. Listens for client messages (ping → pong) until the client leaves
4. Unregisters, whatever the reason the loop ended

Outgoing broadcasts don't pass through this handler at all; the hub's
per-viewer writer task sends them.
"""

import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from eventwall.api.deps import get_hub
from eventwall.auth.dependencies import identity_from_token
from eventwall.auth.jwt import TokenError
from eventwall.config import settings
from eventwall.realtime.hub import BroadcastHub

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def gallery_websocket(
    websocket: WebSocket,
    hub: BroadcastHub = Depends(get_hub),
):
    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")
    viewer = None

    if not token and settings.environment != "development":
        await websocket.close(code=4001, reason="Authentication required")
        return

    if token:
        try:
            viewer = identity_from_token(token)
        except TokenError:
            await websocket.close(code=4001, reason="Invalid or expired token")
            return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()
    log = logger.bind(viewer=viewer.user_id if viewer else "anonymous")
    await hub.register(websocket)
    log.info("ws.connected")

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        log.warning("ws.error", error=str(e))
    finally:
        hub.unregister(websocket)
        log.info("ws.disconnected")
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
