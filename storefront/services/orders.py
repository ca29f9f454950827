"""
Order Views and Status Workflow

Read-side projections of placed orders (customer history, admin
dashboard) and the admin status transitions.

Workflow:
    pending ──► confirmed ──► preparing ──► ready ──► completed
       │            │             │           │
       └────────────┴─────────────┴───────────┴──► cancelled

Later stages may be skipped (pending ─► completed is allowed);
completed and cancelled are terminal.
"""

import logging
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.models import Order, OrderItem, OrderStatus
from storefront.schemas import OrderItemResponse, OrderResponse
from storefront.services.order_feed import get_order_feed

logger = logging.getLogger(__name__)


STATUS_COLORS = {
    OrderStatus.PENDING: "bg-yellow-500",
    OrderStatus.CONFIRMED: "bg-blue-500",
    OrderStatus.PREPARING: "bg-purple-500",
    OrderStatus.READY: "bg-green-500",
    OrderStatus.COMPLETED: "bg-green-700",
    OrderStatus.CANCELLED: "bg-red-500",
}
DEFAULT_STATUS_COLOR = "bg-gray-500"

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PREPARING: {
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.READY: {
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


class OrderNotFound(Exception):
    pass


class OrderStatusError(Exception):
    """Refused status transition."""


def status_color(status: Union[OrderStatus, str]) -> str:
    """Badge colour for a status; unknown values fall back to grey."""
    try:
        return STATUS_COLORS[OrderStatus(status)]
    except ValueError:
        return DEFAULT_STATUS_COLOR


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def serialize_order(order: Order) -> OrderResponse:
    items = []
    for item in order.items:
        price = Decimal(item.price)
        items.append(OrderItemResponse(
            food_item_id=item.food_item_id,
            name=item.food_item.name if item.food_item else None,
            quantity=item.quantity,
            price=price,
            line_total=(price * item.quantity).quantize(Decimal("0.01")),
        ))

    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        status_color=status_color(order.status),
        total_amount=order.total_amount,
        delivery_address=order.delivery_address,
        phone=order.phone,
        notes=order.notes,
        created_at=order.created_at,
        items=items,
    )


def _order_query():
    return (
        select(Order)
        .options(selectinload(Order.items).selectinload(OrderItem.food_item))
        .execution_options(populate_existing=True)
    )


async def load_order(
    db: AsyncSession,
    order_id: int,
    user_id: Optional[int] = None,
) -> Order:
    """
    Load one order with its items.

    Args:
        user_id: When given, the order must belong to this user

    Raises:
        OrderNotFound
    """
    query = _order_query().where(Order.id == order_id)
    if user_id is not None:
        query = query.where(Order.user_id == user_id)

    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(f"Order #{order_id} not found")
    return order


async def list_orders(
    db: AsyncSession,
    user_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
) -> list[Order]:
    """Orders newest first, optionally for one user and/or one status."""
    query = _order_query().order_by(Order.created_at.desc(), Order.id.desc())
    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    if status is not None:
        query = query.where(Order.status == status)

    result = await db.execute(query)
    return list(result.scalars().all())


async def update_status(
    db: AsyncSession,
    order_id: int,
    new_status: OrderStatus,
) -> Order:
    """
    Move an order to a new status.

    Raises:
        OrderNotFound: unknown order
        OrderStatusError: transition not allowed from the current status
    """
    order = await load_order(db, order_id)
    current = order.status

    if not can_transition(current, new_status):
        raise OrderStatusError(
            f"Cannot change order #{order_id} from {current.value} to {new_status.value}"
        )

    order.status = new_status
    await db.commit()
    logger.info(f"Order #{order_id}: {current.value} -> {new_status.value}")

    await get_order_feed().publish("UPDATE", order_id)
    return await load_order(db, order_id)
