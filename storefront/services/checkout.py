"""
Checkout Flow

Turns a signed-in user's cart into an order:

    1. validate: signed in, address, phone, non-empty cart
    2. total = Σ unit price × quantity (Decimal, to the cent)
    3. insert order header + one order item per cart line (price frozen)
    4. delete the user's cart rows

Steps 3 and 4 share one database transaction; if any statement fails the
whole checkout is rolled back, so there is never an order without items
or an order whose cart was left behind.
"""

import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import AuthSession, CartItem, Order, OrderItem, OrderStatus
from storefront.schemas import CheckoutRequest
from storefront.services.cart import RemoteCartStore, cart_subtotal
from storefront.services.order_feed import get_order_feed
from storefront.services.orders import load_order

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Checkout refused or failed; the message is shown to the customer."""


class LoginRequired(CheckoutError):
    pass


async def _clear_cart_rows(db: AsyncSession, user_id: int) -> None:
    await db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id)
        .execution_options(synchronize_session=False)
    )


async def place_order(
    db: AsyncSession,
    session: Optional[AuthSession],
    request: CheckoutRequest,
) -> Order:
    """
    Place an order from the caller's cart.

    Raises:
        LoginRequired: guest or anonymous caller
        CheckoutError: missing details, empty cart, or write failure
    """
    if session is None or session.is_guest:
        raise LoginRequired(
            "You need to be logged in to place an order. Please sign up or log in to continue."
        )

    delivery_address = request.delivery_address.strip()
    phone = request.phone.strip()
    if not delivery_address or not phone:
        raise CheckoutError("Please provide delivery address and phone number")

    user_id = session.user_id
    lines = await RemoteCartStore(db, user_id).list()
    if not lines:
        raise CheckoutError("Your cart is empty")

    missing = [line.food_item_id for line in lines if line.food_id is None]
    if missing:
        raise CheckoutError("Some items in your cart are no longer on the menu")

    total_amount = cart_subtotal(lines)

    order = Order(
        user_id=user_id,
        status=OrderStatus.PENDING,
        total_amount=total_amount,
        delivery_address=delivery_address,
        phone=phone,
        notes=(request.notes or "").strip() or None,
    )
    order.items = [
        OrderItem(food_item_id=line.food_id, quantity=line.quantity, price=line.price)
        for line in lines
    ]

    try:
        db.add(order)
        await db.flush()
        await _clear_cart_rows(db, user_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Checkout failed for user #{user_id}: {e}")
        raise CheckoutError("Failed to place order") from e

    logger.info(
        f"Order #{order.id} placed by user #{user_id}: "
        f"{len(lines)} lines, total {total_amount}"
    )

    await get_order_feed().publish("INSERT", order.id)
    return await load_order(db, order.id)
