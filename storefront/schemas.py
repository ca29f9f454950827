"""
Pydantic Schemas for Request/Response Validation

Covers sessions and profiles, the catalog, carts, checkout, orders,
the assistant chat and invoice uploads.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.models import FoodType, OrderStatus, SessionKind


# =============================================================================
# SESSIONS & PROFILES
# =============================================================================

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    full_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    """A freshly opened session. The token goes in the Authorization header."""
    token: str
    kind: SessionKind
    user_id: Optional[int] = None
    chat_session_id: str
    expires_at: datetime


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    is_admin: bool


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)


# =============================================================================
# CATALOG
# =============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Biryani"])
    description: Optional[str] = None
    display_order: int = Field(default=0, examples=[1])


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    display_order: int


class FoodItemCreate(BaseModel):
    """Admin form for adding or replacing a food item."""
    name: str = Field(..., min_length=1, max_length=150, examples=["Chicken Biryani"])
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=["120.50"])
    image_url: Optional[str] = Field(None, max_length=500)
    available: bool = True
    food_type: FoodType = FoodType.COOKED
    category_id: Optional[int] = None

    @field_validator("image_url", "description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class FoodItemResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    image_url: Optional[str]
    available: bool
    food_type: FoodType
    category_id: Optional[int]
    category_name: Optional[str] = None


# =============================================================================
# CART
# =============================================================================

class CartAddRequest(BaseModel):
    food_item_id: int


class CartQuantityUpdate(BaseModel):
    delta: int = Field(..., examples=[-1, 1])


class FoodSnapshot(BaseModel):
    """Food item fields joined into a cart line."""
    id: Optional[int]
    name: str
    price: Decimal
    image_url: Optional[str]


class CartLineResponse(BaseModel):
    food_item_id: int
    quantity: int
    food_item: FoodSnapshot
    line_total: Decimal


class CartResponse(BaseModel):
    backing: str
    items: List[CartLineResponse]
    item_count: int
    total_quantity: int
    subtotal: Decimal


# =============================================================================
# CHECKOUT & ORDERS
# =============================================================================

class CheckoutRequest(BaseModel):
    """
    Checkout form.

    Address and phone are checked by the checkout service so that a blank
    value is reported with a readable message rather than a schema error.
    """
    delivery_address: str = ""
    phone: str = ""
    notes: Optional[str] = Field(None, max_length=1000)


class OrderItemResponse(BaseModel):
    food_item_id: Optional[int]
    name: Optional[str]
    quantity: int
    price: Decimal
    line_total: Decimal


class OrderResponse(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    status_color: str
    total_amount: Decimal
    delivery_address: str
    phone: str
    notes: Optional[str]
    created_at: Optional[datetime]
    items: List[OrderItemResponse]


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderResponse]


class AdminOrderListResponse(BaseModel):
    """Orders as of feed ``version``; stale re-fetches can be dropped by comparing it."""
    version: int
    total: int
    orders: List[OrderResponse]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# =============================================================================
# ASSISTANT & INVOICES
# =============================================================================

class ChatRequest(BaseModel):
    message: str = Field(..., max_length=2000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message must not be empty")
        return v


class ChatResponse(BaseModel):
    success: bool
    role: str = "assistant"
    content: str
    session_id: str


class GreetingResponse(BaseModel):
    role: str = "assistant"
    content: str


class InvoiceUploadResponse(BaseModel):
    success: bool
    message: str
    task_id: str
    filename: str
    size_bytes: int


class InvoiceStatusResponse(BaseModel):
    task_id: str
    state: str
    result: Optional[Any] = None


# =============================================================================
# GENERIC
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    guest_storage: str
    assistant_service: str
    timestamp: datetime
