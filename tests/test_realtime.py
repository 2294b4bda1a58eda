import pytest

from wcpilot.api.realtime import websocket_endpoint
from wcpilot.core.security import Identity, issue_token
from wcpilot.services.event_relay import event_relay


class BrokenWebSocket:
    """Accepts the handshake, then fails on the first frame."""

    def __init__(self, token: str):
        self.query_params = {"token": token}
        self.headers = {}
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        raise RuntimeError("Cannot call 'send' once a close message has been sent.")

    async def close(self, code: int = 1000):
        pass


@pytest.mark.asyncio
async def test_socket_failing_on_connected_frame_is_unregistered():
    token = issue_token(Identity(user_id="user-ws", email="ws@example.com"))
    websocket = BrokenWebSocket(token)

    with pytest.raises(RuntimeError):
        await websocket_endpoint(websocket)

    assert websocket.accepted
    assert await event_relay.connection_count("user-ws") == 0
