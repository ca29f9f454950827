"""
Test fixtures.

The app runs against a throwaway SQLite database and a file-backed guest
storage under pytest's tmp_path. Environment variables are set before
anything from ``storefront`` is imported because settings and the engine
are built at import time.
"""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'storefront.db'}"
os.environ["DATA_DIRECTORY"] = str(_TMP / "data")
os.environ.pop("ASSISTANT_WEBHOOK_URL", None)
os.environ.pop("INVOICE_WEBHOOK_URL", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import update  # noqa: E402

from storefront.core.config import get_settings  # noqa: E402
from storefront.database import Base, async_session_maker, engine  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models import Category, FoodItem, FoodType, Profile  # noqa: E402
from storefront.services import order_feed  # noqa: E402
from storefront.services.assistant import reset_assistant_service  # noqa: E402
from storefront.services.storage import reset_guest_storage  # noqa: E402


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
async def fresh_state(tmp_path, monkeypatch):
    """Empty tables, empty guest storage and a new order feed for every test."""
    monkeypatch.setattr(get_settings(), "data_directory", str(tmp_path / "data"))
    monkeypatch.setattr(order_feed, "order_feed", order_feed.OrderFeed())
    reset_guest_storage()
    reset_assistant_service()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    reset_guest_storage()
    reset_assistant_service()
    await engine.dispose()


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def db():
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def make_category(db):
    async def _make(name="Biryani", display_order=0, description=None):
        category = Category(name=name, display_order=display_order, description=description)
        db.add(category)
        await db.commit()
        return category
    return _make


@pytest.fixture
def make_food(db):
    async def _make(
        name="Chicken Biryani",
        price="120.50",
        description=None,
        available=True,
        food_type=FoodType.COOKED,
        category_id=None,
    ):
        item = FoodItem(
            name=name,
            price=Decimal(price),
            description=description,
            available=available,
            food_type=food_type,
            category_id=category_id,
        )
        db.add(item)
        await db.commit()
        return item
    return _make


@pytest.fixture
def guest_session(client):
    async def _open() -> dict:
        resp = await client.post("/api/sessions/guest")
        assert resp.status_code == 201
        return resp.json()
    return _open


@pytest.fixture
def signup_user(client):
    async def _signup(email="ayesha@sarminkitchen.com", password="secret123", full_name="Ayesha") -> dict:
        resp = await client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _signup


@pytest.fixture
def admin_headers(signup_user, db):
    async def _admin() -> dict:
        session = await signup_user(email="owner@sarminkitchen.com", full_name="Sarmin")
        await db.execute(
            update(Profile).where(Profile.id == session["user_id"]).values(is_admin=True)
        )
        await db.commit()
        return auth(session["token"])
    return _admin
