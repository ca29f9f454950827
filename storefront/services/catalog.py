"""
Catalog Service

Storefront side: loads food items and categories and applies the
storefront filters (category, search text, menu tab).

Admin side: create, replace and delete food items and categories.
"""

import logging
from typing import Iterable, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import CartItem, Category, FoodItem, FoodType, OrderItem
from storefront.schemas import CategoryCreate, FoodItemCreate, FoodItemResponse

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


async def list_food_items(db: AsyncSession) -> list[FoodItem]:
    """All food items (category loaded alongside), ordered by name."""
    result = await db.execute(select(FoodItem).order_by(FoodItem.name))
    return list(result.scalars().all())


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.display_order, Category.id))
    return list(result.scalars().all())


def filter_food_items(
    items: Iterable[FoodItem],
    category: Union[str, int, None] = ALL_CATEGORIES,
    search: str = "",
    food_type: Optional[FoodType] = None,
) -> list[FoodItem]:
    """
    Apply the storefront filters.

    Args:
        items: Food items to filter
        category: ``"all"`` / empty for every category, otherwise a category id
        search: Case-insensitive substring matched against name or description
        food_type: Restrict to one menu tab

    Returns:
        Matching items, input order preserved
    """
    needle = (search or "").strip().lower()
    category_id = None
    if category not in (None, "", ALL_CATEGORIES):
        category_id = int(category)

    matched = []
    for item in items:
        if food_type is not None and item.food_type != food_type:
            continue
        if category_id is not None and item.category_id != category_id:
            continue
        if needle:
            in_name = needle in item.name.lower()
            in_description = bool(item.description) and needle in item.description.lower()
            if not (in_name or in_description):
                continue
        matched.append(item)
    return matched


def to_food_response(item: FoodItem) -> FoodItemResponse:
    return FoodItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        price=item.price,
        image_url=item.image_url,
        available=item.available,
        food_type=item.food_type,
        category_id=item.category_id,
        category_name=item.category.name if item.category else None,
    )


# =============================================================================
# ADMIN CONSOLE
# =============================================================================

class CatalogError(Exception):
    pass


class CatalogNotFound(CatalogError):
    pass


async def get_food_item(db: AsyncSession, food_item_id: int) -> FoodItem:
    result = await db.execute(
        select(FoodItem)
        .where(FoodItem.id == food_item_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise CatalogNotFound(f"Food item #{food_item_id} not found")
    return item


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise CatalogNotFound(f"Category #{category_id} not found")
    return category


async def _check_category(db: AsyncSession, category_id: Optional[int]) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise CatalogError(f"Category #{category_id} does not exist")


async def create_food_item(db: AsyncSession, data: FoodItemCreate) -> FoodItem:
    await _check_category(db, data.category_id)
    item = FoodItem(**data.model_dump())
    db.add(item)
    await db.commit()
    logger.info(f"🍽️ Added food item #{item.id} - {item.name}")
    return await get_food_item(db, item.id)


async def update_food_item(db: AsyncSession, food_item_id: int, data: FoodItemCreate) -> FoodItem:
    item = await get_food_item(db, food_item_id)
    await _check_category(db, data.category_id)
    for field, value in data.model_dump().items():
        setattr(item, field, value)
    await db.commit()
    logger.info(f"Updated food item #{item.id} - {item.name}")
    return await get_food_item(db, item.id)


async def delete_food_item(db: AsyncSession, food_item_id: int) -> None:
    """
    Delete a food item.

    Signed-in cart rows for it go with it; order history keeps its lines
    with ``food_item_id`` cleared. Guest carts keep dangling ids, which
    read back as blank lines.
    """
    item = await get_food_item(db, food_item_id)
    await db.execute(
        delete(CartItem)
        .where(CartItem.food_item_id == food_item_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(OrderItem)
        .where(OrderItem.food_item_id == food_item_id)
        .values(food_item_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(item)
    await db.commit()
    logger.info(f"🗑️ Deleted food item #{food_item_id}")


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    category = Category(**data.model_dump())
    db.add(category)
    await db.commit()
    logger.info(f"Added category #{category.id} - {category.name}")
    return category


async def update_category(db: AsyncSession, category_id: int, data: CategoryCreate) -> Category:
    category = await get_category(db, category_id)
    for field, value in data.model_dump().items():
        setattr(category, field, value)
    await db.commit()
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """Delete a category; its food items stay on the menu uncategorised."""
    category = await get_category(db, category_id)
    await db.execute(
        update(FoodItem)
        .where(FoodItem.category_id == category_id)
        .values(category_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(category)
    await db.commit()
    logger.info(f"🗑️ Deleted category #{category_id}")
