"""
Order Change Feed

Pushes a notification to every connected admin console whenever an order
is placed or its status changes. Each change bumps a version counter that
is also returned by the admin order list, so a console that re-fetches on
every event can ignore a response older than one it already rendered.

The counter lives in process memory; it restarts at 0 with the process.
"""

import json
import logging
from typing import Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class OrderFeed:
    """Versioned broadcaster for order changes."""

    def __init__(self) -> None:
        self.active_connections: Set[WebSocket] = set()
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"Admin feed client connected ({len(self.active_connections)} active)")
        await websocket.send_text(json.dumps({"event": "hello", "version": self._version}))

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)

    async def publish(self, change_type: str, order_id: int) -> int:
        """
        Record a change and notify subscribers.

        Args:
            change_type: "INSERT" or "UPDATE"
            order_id: Order that changed

        Returns:
            The new feed version
        """
        self._version += 1
        payload = json.dumps({
            "event": "orders_changed",
            "type": change_type,
            "order_id": order_id,
            "version": self._version,
        })

        dead = []
        for ws in list(self.active_connections):
            try:
                await ws.send_text(payload)
            except Exception as e:
                logger.debug(f"Dropping admin feed client: {e}")
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

        logger.debug(f"Order feed v{self._version}: {change_type} #{order_id}")
        return self._version


order_feed = OrderFeed()


def get_order_feed() -> OrderFeed:
    return order_feed
