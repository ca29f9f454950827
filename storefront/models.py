"""
SQLAlchemy Database Models

Tables behind the storefront and admin console:
- Profiles and scoped auth sessions (signed-in and guest)
- Catalog: categories and food items
- Signed-in carts
- Orders and their line items (price frozen at purchase)
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


class FoodType(str, enum.Enum):
    """Menu tab a food item is listed under."""
    COOKED = "cooked"
    READY_TO_COOK = "ready_to_cook"


class OrderStatus(str, enum.Enum):
    """
    Canonical order status workflow.

    Shared by the admin console and the customer order history.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionKind(str, enum.Enum):
    USER = "user"
    GUEST = "guest"


class Profile(Base):
    """
    Customer or administrator account.

    Address and phone pre-fill the checkout form.
    """
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Profile #{self.id} - {self.email}>"


class AuthSession(Base):
    """
    Explicitly scoped client session.

    A guest session owns a guest-storage namespace (its cart); a user
    session is bound to a profile. Both carry their own chat session id
    and stop being valid once expired or revoked.
    """
    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    kind = Column(Enum(SessionKind), nullable=False, default=SessionKind.GUEST)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    chat_session_id = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_guest(self) -> bool:
        return self.kind == SessionKind.GUEST

    @property
    def storage_namespace(self) -> str:
        return f"session-{self.id}"

    def __repr__(self):
        return f"<AuthSession #{self.id} - {self.kind.value}>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)  # sort only, not unique
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Category #{self.id} - {self.name}>"


class FoodItem(Base):
    """Purchasable catalog entry. Mutated only through the admin console."""
    __tablename__ = "food_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(150), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    available = Column(Boolean, default=True, nullable=False)
    food_type = Column(Enum(FoodType), default=FoodType.COOKED, nullable=False, index=True)
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    category = relationship("Category", lazy="selectin")

    def __repr__(self):
        return f"<FoodItem #{self.id} - {self.name} - {self.price}>"


class CartItem(Base):
    """Signed-in cart row: one per (user, food item)."""
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "food_item_id", name="uq_cart_user_food"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    food_item_id = Column(
        Integer,
        ForeignKey("food_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    food_item = relationship("FoodItem", lazy="selectin")


class Order(Base):
    """
    Order header: totals and delivery details.

    Created together with its items in a single transaction at checkout.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    total_amount = Column(Numeric(10, 2), nullable=False)
    delivery_address = Column(Text, nullable=False)
    phone = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order #{self.id} - {self.status.value} - {self.total_amount}>"


class OrderItem(Base):
    """Purchased line; price is the unit price captured at checkout."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    food_item_id = Column(
        Integer,
        ForeignKey("food_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    food_item = relationship("FoodItem", lazy="selectin")
