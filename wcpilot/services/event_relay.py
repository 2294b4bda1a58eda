"""
wcpilot/services/event_relay.py

Purpose: Real-time state-change notifications

- Maps user_id -> live WebSocket connections
- Pushes {type, instanceName, ...} events to every connection of a user
- At-most-once: no buffering, no replay, no acknowledgement
- Connections that fail or stall on receive are pruned
"""

from typing import Any, Dict, Set
import asyncio

from wcpilot.core.logging import get_logger
from wcpilot.utils.constants import EVENT_TYPES, RELAY_SEND_TIMEOUT_SECONDS

logger = get_logger(__name__)


class EventRelay:
    """
    In-memory per-user fan-out.

    Connections only need an async `send_json(dict)` method.
    """

    def __init__(self, send_timeout: float = RELAY_SEND_TIMEOUT_SECONDS):
        self.send_timeout = send_timeout
        self._channels: Dict[str, Set[Any]] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, connection: Any) -> None:
        async with self._lock:
            self._channels.setdefault(user_id, set()).add(connection)
            total = len(self._channels[user_id])
        logger.debug(f"[RELAY] Registered connection. User total: {total}", extra={"user_id": user_id})

    async def unregister(self, user_id: str, connection: Any) -> None:
        async with self._lock:
            connections = self._channels.get(user_id)
            if not connections:
                return
            connections.discard(connection)
            if not connections:
                del self._channels[user_id]
        logger.debug("[RELAY] Unregistered connection", extra={"user_id": user_id})

    async def connection_count(self, user_id: str) -> int:
        async with self._lock:
            return len(self._channels.get(user_id, set()))

    async def publish(self, user_id: str, event_type: str, instance_name: str, **payload: Any) -> int:
        """
        Sends an event to the user's current connections.

        Never raises: delivery failures only prune the failing connection.

        Returns:
            Number of connections the event reached
        """
        if event_type not in EVENT_TYPES:
            logger.error(f"[RELAY] Unknown event type {event_type!r} dropped", extra={"user_id": user_id})
            return 0

        async with self._lock:
            connections = set(self._channels.get(user_id, set()))

        if not connections:
            logger.debug(f"[RELAY] No live session for {event_type}", extra={"user_id": user_id})
            return 0

        event = {"type": event_type, "instanceName": instance_name, **payload}

        connections = list(connections)
        results = await asyncio.gather(
            *(self._send(connection, event) for connection in connections),
            return_exceptions=True,
        )

        delivered = 0
        dead = []
        for connection, result in zip(connections, results):
            if isinstance(result, BaseException):
                reason = "timed out" if isinstance(result, asyncio.TimeoutError) else result
                logger.debug(f"[RELAY] Failed to send to connection: {reason}", extra={"user_id": user_id})
                dead.append(connection)
            else:
                delivered += 1

        if dead:
            async with self._lock:
                remaining = self._channels.get(user_id)
                if remaining is not None:
                    for connection in dead:
                        remaining.discard(connection)
                    if not remaining:
                        del self._channels[user_id]
            logger.debug(f"[RELAY] Pruned {len(dead)} dead connections", extra={"user_id": user_id})

        logger.info(
            f"[RELAY] {event_type} delivered to {delivered} connection(s)",
            extra={"user_id": user_id, "instance_name": instance_name, "event_type": event_type}
        )
        return delivered

    async def _send(self, connection: Any, event: Dict[str, Any]) -> None:
        await asyncio.wait_for(connection.send_json(event), timeout=self.send_timeout)


# Global singleton relay instance
event_relay = EventRelay()
