"""
Cart Store Factory

Picks the cart backing for a session:
    - user session  -> RemoteCartStore (``cart_items`` rows)
    - guest session -> GuestCartStore (guest storage array)

The two backings are never synchronized: a guest cart is not merged into
the account cart when the visitor signs in.

Usage:
    from storefront.services.cart import get_cart_store

    cart = get_cart_store(db, session, storage)
    await cart.add(food_item_id)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import AuthSession
from storefront.services.cart.base import (
    BaseCartStore,
    CartError,
    CartLine,
    FoodItemNotFound,
    FoodItemUnavailable,
    cart_subtotal,
)
from storefront.services.cart.guest import GuestCartStore
from storefront.services.cart.remote import RemoteCartStore
from storefront.services.storage import BaseGuestStorage


def get_cart_store(
    db: AsyncSession,
    session: AuthSession,
    storage: BaseGuestStorage,
) -> BaseCartStore:
    """Get the cart store for the given session."""
    if session.is_guest:
        return GuestCartStore(db, storage, session.storage_namespace)
    return RemoteCartStore(db, session.user_id)


__all__ = [
    "get_cart_store",
    "BaseCartStore",
    "RemoteCartStore",
    "GuestCartStore",
    "CartLine",
    "CartError",
    "FoodItemNotFound",
    "FoodItemUnavailable",
    "cart_subtotal",
]
