"""
Remote Cart Store

Signed-in carts kept as ``cart_items`` rows scoped to the user id.
Quantity changes are single ``UPDATE ... SET quantity = quantity + :delta``
statements, so concurrent clicks from two tabs add up instead of
overwriting each other.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import CartItem
from storefront.services.cart.base import BaseCartStore, CartError, CartLine, require_orderable

logger = logging.getLogger(__name__)


class RemoteCartStore(BaseCartStore):
    """Cart backed by the ``cart_items`` table."""

    MAX_ADD_ATTEMPTS = 3

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    @property
    def backing_name(self) -> str:
        return "remote"

    def _scoped(self, food_item_id: int):
        return (
            CartItem.user_id == self.user_id,
            CartItem.food_item_id == food_item_id,
        )

    async def _bump(self, food_item_id: int, delta: int) -> Optional[int]:
        """Shift quantity by ``delta``; None when there is no row."""
        result = await self.db.execute(
            update(CartItem)
            .where(*self._scoped(food_item_id))
            .values(quantity=CartItem.quantity + delta)
            .returning(CartItem.quantity)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def add(self, food_item_id: int) -> int:
        await require_orderable(self.db, food_item_id)

        for _ in range(self.MAX_ADD_ATTEMPTS):
            quantity = await self._bump(food_item_id, 1)
            if quantity is not None:
                await self.db.commit()
                logger.debug(f"User #{self.user_id} cart: food #{food_item_id} -> {quantity}")
                return quantity

            self.db.add(CartItem(user_id=self.user_id, food_item_id=food_item_id, quantity=1))
            try:
                await self.db.commit()
            except IntegrityError:
                # Another request inserted the row first; it may also be gone again
                await self.db.rollback()
                continue

            logger.debug(f"User #{self.user_id} cart: food #{food_item_id} added")
            return 1

        raise CartError(f"Cart entry for food #{food_item_id} kept changing, try again")

    async def set_quantity(self, food_item_id: int, delta: int) -> Optional[int]:
        quantity = await self._bump(food_item_id, delta)
        if quantity is None:
            await self.db.rollback()
            return None

        if quantity <= 0:
            await self.db.execute(
                delete(CartItem)
                .where(*self._scoped(food_item_id))
                .execution_options(synchronize_session=False)
            )
            quantity = 0

        await self.db.commit()
        return quantity

    async def remove(self, food_item_id: int) -> bool:
        result = await self.db.execute(
            delete(CartItem)
            .where(*self._scoped(food_item_id))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def list(self) -> list[CartLine]:
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.user_id == self.user_id)
            .order_by(CartItem.created_at, CartItem.id)
            .execution_options(populate_existing=True)
        )
        return [
            CartLine.from_food(row.food_item_id, row.quantity, row.food_item)
            for row in result.scalars().all()
        ]

    async def clear(self) -> None:
        await self.db.execute(
            delete(CartItem)
            .where(CartItem.user_id == self.user_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
