"""
Customer order endpoints: checkout and order history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import AuthSession
from storefront.routes.deps import get_optional_session, require_user
from storefront.schemas import CheckoutRequest, ErrorResponse, OrderListResponse, OrderResponse
from storefront.services.checkout import CheckoutError, LoginRequired, place_order
from storefront.services.orders import OrderNotFound, list_orders, load_order, serialize_order

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post(
    "/checkout",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place Order",
    responses={500: {"model": ErrorResponse}},
)
async def checkout(
    request: CheckoutRequest,
    session: Optional[AuthSession] = Depends(get_optional_session),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Turn the signed-in cart into an order.

    Guests are asked to log in; their guest cart is left untouched.
    """
    try:
        order = await place_order(db, session, request)
    except LoginRequired as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except CheckoutError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return serialize_order(order)


@router.get("", response_model=OrderListResponse, summary="My Orders")
async def my_orders(
    session: AuthSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    orders = await list_orders(db, user_id=session.user_id)
    return OrderListResponse(
        total=len(orders),
        orders=[serialize_order(order) for order in orders],
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def my_order(
    order_id: int,
    session: AuthSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    try:
        order = await load_order(db, order_id, user_id=session.user_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return serialize_order(order)
