"""
Cart endpoints. Guest and signed-in sessions share the same routes; the
session token decides which cart backing is used.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import AuthSession
from storefront.routes.deps import get_storage, require_session
from storefront.schemas import (
    CartAddRequest,
    CartLineResponse,
    CartQuantityUpdate,
    CartResponse,
    FoodSnapshot,
)
from storefront.services.cart import (
    BaseCartStore,
    CartError,
    CartLine,
    FoodItemNotFound,
    cart_subtotal,
    get_cart_store,
)
from storefront.services.storage import BaseGuestStorage, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def get_cart(
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    storage: BaseGuestStorage = Depends(get_storage),
) -> BaseCartStore:
    return get_cart_store(db, session, storage)


def build_cart_response(backing: str, lines: list[CartLine]) -> CartResponse:
    return CartResponse(
        backing=backing,
        items=[
            CartLineResponse(
                food_item_id=line.food_item_id,
                quantity=line.quantity,
                food_item=FoodSnapshot(
                    id=line.food_id,
                    name=line.name,
                    price=line.price,
                    image_url=line.image_url,
                ),
                line_total=line.line_total,
            )
            for line in lines
        ],
        item_count=len(lines),
        total_quantity=sum(line.quantity for line in lines),
        subtotal=cart_subtotal(lines),
    )


async def _cart_snapshot(cart: BaseCartStore) -> CartResponse:
    try:
        lines = await cart.list()
    except StorageError as e:
        logger.error(f"Guest storage read failed: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    return build_cart_response(cart.backing_name, lines)


@router.get("", response_model=CartResponse, summary="View Cart")
async def view_cart(cart: BaseCartStore = Depends(get_cart)) -> CartResponse:
    return await _cart_snapshot(cart)


@router.post(
    "/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add To Cart",
)
async def add_to_cart(
    request: CartAddRequest,
    cart: BaseCartStore = Depends(get_cart),
) -> CartResponse:
    """Add one unit; adding an item already in the cart bumps its quantity."""
    try:
        await cart.add(request.food_item_id)
    except FoodItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        logger.error(f"Guest storage write failed: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    return await _cart_snapshot(cart)


@router.patch("/items/{food_item_id}", response_model=CartResponse, summary="Change Quantity")
async def change_quantity(
    food_item_id: int,
    request: CartQuantityUpdate,
    cart: BaseCartStore = Depends(get_cart),
) -> CartResponse:
    """Shift the quantity by ``delta``; reaching zero removes the line."""
    try:
        quantity = await cart.set_quantity(food_item_id, request.delta)
    except StorageError as e:
        logger.error(f"Guest storage write failed: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    if quantity is None:
        raise HTTPException(status_code=404, detail=f"Food item #{food_item_id} is not in the cart")
    return await _cart_snapshot(cart)


@router.delete("/items/{food_item_id}", response_model=CartResponse, summary="Remove From Cart")
async def remove_from_cart(
    food_item_id: int,
    cart: BaseCartStore = Depends(get_cart),
) -> CartResponse:
    try:
        removed = await cart.remove(food_item_id)
    except StorageError as e:
        logger.error(f"Guest storage write failed: {e}")
        raise HTTPException(status_code=503, detail="Cart storage unavailable")
    if not removed:
        raise HTTPException(status_code=404, detail=f"Food item #{food_item_id} is not in the cart")
    return await _cart_snapshot(cart)
