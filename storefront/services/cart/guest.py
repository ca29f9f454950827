"""
Guest Cart Store

Guest carts live in guest storage as an ordered array:

    [{"food_item_id": 3, "quantity": 2}, {"food_item_id": 7, "quantity": 1}]

Entries have no identity beyond their position; the food item snapshot is
joined in at read time from ``food_items``.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import FoodItem
from storefront.services.cart.base import BaseCartStore, CartLine, require_orderable
from storefront.services.storage import BaseGuestStorage, GUEST_CART_KEY

logger = logging.getLogger(__name__)


class GuestCartStore(BaseCartStore):
    """Cart backed by the guest session's storage namespace."""

    def __init__(self, db: AsyncSession, storage: BaseGuestStorage, namespace: str):
        self.db = db
        self.storage = storage
        self.namespace = namespace

    @property
    def backing_name(self) -> str:
        return "guest"

    async def _entries(self) -> list[dict]:
        return await self.storage.get(self.namespace, GUEST_CART_KEY, []) or []

    async def add(self, food_item_id: int) -> int:
        await require_orderable(self.db, food_item_id)

        def bump(entries):
            entries = list(entries or [])
            for entry in entries:
                if entry["food_item_id"] == food_item_id:
                    entry["quantity"] += 1
                    break
            else:
                entries.append({"food_item_id": food_item_id, "quantity": 1})
            return entries

        entries = await self.storage.update(self.namespace, GUEST_CART_KEY, bump, [])
        quantity = next(e["quantity"] for e in entries if e["food_item_id"] == food_item_id)
        logger.debug(f"Guest cart {self.namespace}: food #{food_item_id} -> {quantity}")
        return quantity

    async def set_quantity(self, food_item_id: int, delta: int) -> Optional[int]:
        outcome: dict[str, Optional[int]] = {}

        def shift(entries):
            outcome["quantity"] = None
            kept = []
            for entry in entries or []:
                if entry["food_item_id"] == food_item_id:
                    new_quantity = entry["quantity"] + delta
                    outcome["quantity"] = max(new_quantity, 0)
                    if new_quantity <= 0:
                        continue
                    entry = {**entry, "quantity": new_quantity}
                kept.append(entry)
            return kept

        await self.storage.update(self.namespace, GUEST_CART_KEY, shift, [])
        return outcome.get("quantity")

    async def remove(self, food_item_id: int) -> bool:
        outcome = {"removed": False}

        def drop(entries):
            entries = entries or []
            kept = [e for e in entries if e["food_item_id"] != food_item_id]
            outcome["removed"] = len(kept) != len(entries)
            return kept

        await self.storage.update(self.namespace, GUEST_CART_KEY, drop, [])
        return outcome["removed"]

    async def list(self) -> list[CartLine]:
        entries = await self._entries()
        if not entries:
            return []

        ids = {entry["food_item_id"] for entry in entries}
        result = await self.db.execute(select(FoodItem).where(FoodItem.id.in_(ids)))
        foods = {food.id: food for food in result.scalars().all()}

        return [
            CartLine.from_food(entry["food_item_id"], entry["quantity"], foods.get(entry["food_item_id"]))
            for entry in entries
        ]

    async def clear(self) -> None:
        await self.storage.delete(self.namespace, GUEST_CART_KEY)
