"""
Admin order feed over WebSocket.

    ws://host/ws/admin/orders?token=<admin session token>

Clients receive ``{"event": "orders_changed", ...}`` after each order
insert or status change and re-fetch ``GET /api/admin/orders``.
"""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from storefront.database import async_session_maker
from storefront.models import Profile
from storefront.services.order_feed import get_order_feed
from storefront.services.sessions import SessionError, resolve_session

logger = logging.getLogger(__name__)

router = APIRouter()


async def _is_admin_token(token: str) -> bool:
    async with async_session_maker() as db:
        try:
            session = await resolve_session(db, token)
        except SessionError:
            return False
        if session.is_guest:
            return False
        profile = await db.get(Profile, session.user_id)
        return bool(profile and profile.is_admin)


@router.websocket("/ws/admin/orders")
async def admin_order_feed(websocket: WebSocket, token: str = Query("")):
    if not token or not await _is_admin_token(token):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    feed = get_order_feed()
    await feed.connect(websocket)
    try:
        while True:
            # Client messages are ignored; the loop only detects disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Admin feed client disconnected")
    finally:
        feed.disconnect(websocket)
