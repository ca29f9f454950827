"""
Public menu endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import FoodType
from storefront.schemas import CategoryResponse, FoodItemResponse
from storefront.services import catalog

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


@router.get("/food-items", response_model=List[FoodItemResponse], summary="Browse Menu")
async def browse_food_items(
    category: str = Query(catalog.ALL_CATEGORIES, description='"all" or a category id'),
    search: str = Query("", max_length=100),
    food_type: Optional[FoodType] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[FoodItemResponse]:
    items = await catalog.list_food_items(db)
    try:
        matched = catalog.filter_food_items(items, category, search, food_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid category '{category}'")
    return [catalog.to_food_response(item) for item in matched]


@router.get("/categories", response_model=List[CategoryResponse])
async def browse_categories(db: AsyncSession = Depends(get_db)):
    return await catalog.list_categories(db)
