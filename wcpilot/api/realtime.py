"""
wcpilot/api/realtime.py

Purpose: WebSocket channel for instance and message notifications

- Authenticates with the access token (`?token=` or Authorization header)
- Registers the socket for the token's user on the event relay
- Answers {"type": "ping"} with {"type": "pong"}
- Read-only: every mutation goes through the REST endpoints
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from typing import Optional

from wcpilot.core.exceptions import AuthenticationError
from wcpilot.core.logging import get_logger
from wcpilot.core.security import verify_token
from wcpilot.services.event_relay import event_relay
from wcpilot.utils.time_utils import utc_now

logger = get_logger(__name__)
router = APIRouter()


def _extract_token(websocket: WebSocket) -> Optional[str]:
    token = websocket.query_params.get("token")
    if token:
        return token

    authorization = websocket.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    try:
        identity = verify_token(_extract_token(websocket))
    except AuthenticationError as e:
        logger.info(f"[WS] Rejected connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    user_id = identity.user_id
    await event_relay.register(user_id, websocket)
    logger.info("[WS] Connected", extra={"user_id": user_id})

    try:
        await websocket.send_json({
            "type": "connected",
            "userId": user_id,
            "ts": utc_now().isoformat(),
        })

        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong", "ts": utc_now().isoformat()})
            # Anything else is ignored

    except WebSocketDisconnect:
        logger.info("[WS] Disconnected", extra={"user_id": user_id})
    except ValueError as e:
        # malformed JSON frame
        logger.debug(f"[WS] Closing on invalid frame: {e}", extra={"user_id": user_id})
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
    finally:
        await event_relay.unregister(user_id, websocket)
