"""
Cart Store Abstract Base Class

One cart abstraction, two backings:
    - RemoteCartStore: ``cart_items`` rows of a signed-in user
    - GuestCartStore: ordered array in the guest session's storage

Both key entries by food item id and share the same semantics:
    add(id)               -> quantity + 1 (new entry at 1)
    set_quantity(id, d)   -> quantity + d, entry removed when <= 0
    list()                -> entries with the food item snapshot joined in
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import FoodItem


class CartError(Exception):
    """Base error for cart operations."""


class FoodItemNotFound(CartError):
    pass


class FoodItemUnavailable(CartError):
    pass


@dataclass
class CartLine:
    """
    One cart entry with its food item snapshot.

    ``food_id`` is None when the food item no longer exists (guest carts
    can still reference deleted items).
    """
    food_item_id: int
    quantity: int
    food_id: Optional[int]
    name: str
    price: Decimal
    image_url: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_food(cls, food_item_id: int, quantity: int, food: Optional[FoodItem]) -> "CartLine":
        if food is None:
            return cls(
                food_item_id=food_item_id,
                quantity=quantity,
                food_id=None,
                name="",
                price=Decimal("0"),
            )
        return cls(
            food_item_id=food_item_id,
            quantity=quantity,
            food_id=food.id,
            name=food.name,
            price=Decimal(food.price),
            image_url=food.image_url,
        )


def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of unit price x quantity, exact to the cent."""
    total = sum((line.line_total for line in lines), Decimal("0"))
    return total.quantize(Decimal("0.01"))


async def require_orderable(db: AsyncSession, food_item_id: int) -> FoodItem:
    """
    Load a food item that may be added to a cart.

    Raises:
        FoodItemNotFound: no such item
        FoodItemUnavailable: item is switched off in the admin console
    """
    food = await db.get(FoodItem, food_item_id)
    if food is None:
        raise FoodItemNotFound(f"Food item #{food_item_id} not found")
    if not food.available:
        raise FoodItemUnavailable(f"{food.name} is currently unavailable")
    return food


class BaseCartStore(ABC):
    """Abstract base class for cart backings."""

    @property
    @abstractmethod
    def backing_name(self) -> str:
        """Return the backing name ("remote" or "guest")."""
        pass

    @abstractmethod
    async def add(self, food_item_id: int) -> int:
        """
        Add one unit of a food item.

        Returns:
            int: quantity after the add
        """
        pass

    @abstractmethod
    async def set_quantity(self, food_item_id: int, delta: int) -> Optional[int]:
        """
        Adjust an entry by a signed delta.

        Returns:
            Quantity after the change, 0 when the entry was removed,
            None when the item was not in the cart
        """
        pass

    @abstractmethod
    async def remove(self, food_item_id: int) -> bool:
        """Remove an entry. Returns False if it was not there."""
        pass

    @abstractmethod
    async def list(self) -> list[CartLine]:
        """All entries in insertion order, with food snapshots."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass
