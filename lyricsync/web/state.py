"""ClientHub — fan-out bridge between the service and WebSocket clients.

Several connections may claim the same client id (a reloaded tab reconnecting
before its old socket is noticed as closed); each keeps its own queue.
"""
import asyncio
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

PLAYER = "player"
OBSERVER = "observer"
ROLES = (PLAYER, OBSERVER)


class ClientHub:
    def __init__(self):
        # queue -> (client_id, role), in connection order
        self._connections: dict[asyncio.Queue, tuple[str, str]] = {}

    def subscribe(self, client_id: str, role: str = OBSERVER) -> asyncio.Queue:
        """Register a new connection. Returns a queue that receives (event, data) tuples."""
        q: asyncio.Queue = asyncio.Queue(maxsize=50)
        self._connections[q] = (client_id, role)
        return q

    def unsubscribe(self, queue: asyncio.Queue):
        self._connections.pop(queue, None)

    def is_connected(self, client_id: str) -> bool:
        return any(cid == client_id for cid, _ in self._connections.values())

    @property
    def client_count(self) -> int:
        return len(self._connections)

    def clients(self, role: Optional[str] = None) -> list[str]:
        """Distinct connected client ids, optionally of one role."""
        seen = []
        for cid, r in self._connections.values():
            if (role is None or r == role) and cid not in seen:
                seen.append(cid)
        return seen

    def reply(self, queue: asyncio.Queue, event: str, data: Any) -> bool:
        """Queue one event for one connection. False if it's gone or hopelessly behind."""
        if queue not in self._connections:
            return False
        try:
            queue.put_nowait((event, data))
            return True
        except asyncio.QueueFull:
            # Slow client: drop oldest
            try:
                queue.get_nowait()
                queue.put_nowait((event, data))
                return True
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                logger.warning("Dropping stalled connection for %s", self._connections[queue][0])
                self.unsubscribe(queue)
                return False

    def publish(self, event: str, data: Any, role: Optional[str] = None) -> int:
        """Push an event to every connection (of a role). No subscribers is fine. Returns deliveries."""
        delivered = 0
        for q, (_, r) in list(self._connections.items()):
            if role is not None and r != role:
                continue
            if self.reply(q, event, data):
                delivered += 1
        return delivered
