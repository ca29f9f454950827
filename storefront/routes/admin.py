"""
Admin console endpoints: order board, food items, categories and
invoice uploads. Every route requires an administrator session.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import OrderStatus
from storefront.routes.deps import require_admin
from storefront.schemas import (
    AdminOrderListResponse,
    CategoryCreate,
    CategoryResponse,
    FoodItemCreate,
    FoodItemResponse,
    InvoiceStatusResponse,
    InvoiceUploadResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services import catalog, invoices
from storefront.services.order_feed import get_order_feed
from storefront.services.orders import (
    OrderNotFound,
    OrderStatusError,
    list_orders,
    serialize_order,
    update_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders", response_model=AdminOrderListResponse, summary="Order Board")
async def order_board(
    status_filter: str = Query("all", alias="status"),
    db: AsyncSession = Depends(get_db),
) -> AdminOrderListResponse:
    """
    All orders newest first, optionally for one status.

    ``version`` is the feed version at read time; a console that already
    rendered a newer version can discard this response.
    """
    order_status = None
    if status_filter != "all":
        try:
            order_status = OrderStatus(status_filter.lower())
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Options: {['all'] + [s.value for s in OrderStatus]}"
            )

    version = get_order_feed().version
    orders = await list_orders(db, status=order_status)
    return AdminOrderListResponse(
        version=version,
        total=len(orders),
        orders=[serialize_order(order) for order in orders],
    )


@router.patch("/orders/{order_id}/status", response_model=OrderResponse, summary="Change Status")
async def change_order_status(
    order_id: int,
    request: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    try:
        order = await update_status(db, order_id, request.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderStatusError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return serialize_order(order)


# =============================================================================
# FOOD ITEMS
# =============================================================================

@router.get("/food-items", response_model=List[FoodItemResponse])
async def admin_food_items(db: AsyncSession = Depends(get_db)) -> List[FoodItemResponse]:
    """Every food item, including unavailable ones."""
    items = await catalog.list_food_items(db)
    return [catalog.to_food_response(item) for item in items]


@router.post("/food-items", response_model=FoodItemResponse, status_code=status.HTTP_201_CREATED)
async def create_food_item(
    request: FoodItemCreate,
    db: AsyncSession = Depends(get_db),
) -> FoodItemResponse:
    try:
        item = await catalog.create_food_item(db, request)
    except catalog.CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return catalog.to_food_response(item)


@router.put("/food-items/{food_item_id}", response_model=FoodItemResponse)
async def replace_food_item(
    food_item_id: int,
    request: FoodItemCreate,
    db: AsyncSession = Depends(get_db),
) -> FoodItemResponse:
    try:
        item = await catalog.update_food_item(db, food_item_id, request)
    except catalog.CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except catalog.CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return catalog.to_food_response(item)


@router.delete("/food-items/{food_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_food_item(food_item_id: int, db: AsyncSession = Depends(get_db)) -> None:
    try:
        await catalog.delete_food_item(db, food_item_id)
    except catalog.CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=List[CategoryResponse])
async def admin_categories(db: AsyncSession = Depends(get_db)):
    return await catalog.list_categories(db)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(request: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await catalog.create_category(db, request)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def replace_category(
    category_id: int,
    request: CategoryCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await catalog.update_category(db, category_id, request)
    except catalog.CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_category(category_id: int, db: AsyncSession = Depends(get_db)) -> None:
    """Delete a category; its food items become uncategorised."""
    try:
        await catalog.delete_category(db, category_id)
    except catalog.CatalogNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================================================
# INVOICES
# =============================================================================

@router.post(
    "/invoices",
    response_model=InvoiceUploadResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload Invoice",
)
async def upload_invoice(file: UploadFile = File(...)) -> InvoiceUploadResponse:
    """Store a PDF/Excel invoice and queue it for the extraction webhook."""
    try:
        path, size = await invoices.save_invoice(file)
    except invoices.InvoiceTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except invoices.InvoiceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    task_id = invoices.queue_invoice(path, file.filename)
    return InvoiceUploadResponse(
        success=True,
        message="Invoice uploaded and queued for processing",
        task_id=task_id,
        filename=file.filename,
        size_bytes=size,
    )


@router.get("/invoices/{task_id}", response_model=InvoiceStatusResponse)
async def invoice_status(task_id: str) -> InvoiceStatusResponse:
    state, result = invoices.invoice_status(task_id)
    return InvoiceStatusResponse(task_id=task_id, state=state, result=result)
