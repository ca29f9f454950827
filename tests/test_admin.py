from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import func, select

from storefront.core.config import get_settings
from storefront.models import CartItem, FoodItem, OrderItem
from storefront.services import invoices
from storefront.tasks import forward_invoice
from tests.conftest import auth


# =============================================================================
# ACCESS
# =============================================================================

async def test_admin_routes_need_admin(client, signup_user):
    resp = await client.get("/api/admin/food-items")
    assert resp.status_code == 401

    customer = auth((await signup_user())["token"])
    resp = await client.get("/api/admin/food-items", headers=customer)
    assert resp.status_code == 403


# =============================================================================
# FOOD ITEMS & CATEGORIES
# =============================================================================

async def test_food_item_crud(client, admin_headers, make_category):
    admin = await admin_headers()
    category = await make_category("Rice")

    resp = await client.post(
        "/api/admin/food-items",
        json={
            "name": "Kacchi Biryani",
            "description": "",
            "price": "350.00",
            "food_type": "cooked",
            "category_id": category.id,
            "image_url": "  ",
        },
        headers=admin,
    )
    assert resp.status_code == 201, resp.text
    item = resp.json()
    assert item["category_name"] == "Rice"
    assert item["description"] is None
    assert item["image_url"] is None
    assert Decimal(item["price"]) == Decimal("350.00")

    resp = await client.put(
        f"/api/admin/food-items/{item['id']}",
        json={"name": "Kacchi Biryani (Half)", "price": "180", "available": False, "food_type": "ready_to_cook"},
        headers=admin,
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["available"] is False
    assert updated["food_type"] == "ready_to_cook"
    assert updated["category_id"] is None

    listing = (await client.get("/api/admin/food-items", headers=admin)).json()
    assert [i["name"] for i in listing] == ["Kacchi Biryani (Half)"]

    resp = await client.delete(f"/api/admin/food-items/{item['id']}", headers=admin)
    assert resp.status_code == 204
    assert (await client.get("/api/admin/food-items", headers=admin)).json() == []

    resp = await client.delete(f"/api/admin/food-items/{item['id']}", headers=admin)
    assert resp.status_code == 404


@pytest.mark.parametrize("payload", [
    {"price": "10"},
    {"name": "", "price": "10"},
    {"name": "Tea", "price": "-1"},
    {"name": "Tea", "price": "ten"},
    {"name": "Tea", "price": "10", "food_type": "frozen"},
])
async def test_food_item_validation(payload, client, admin_headers):
    admin = await admin_headers()
    resp = await client.post("/api/admin/food-items", json=payload, headers=admin)
    assert resp.status_code == 422


async def test_food_item_category_must_exist(client, admin_headers):
    admin = await admin_headers()
    resp = await client.post(
        "/api/admin/food-items",
        json={"name": "Tea", "price": "20", "category_id": 42},
        headers=admin,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Category #42 does not exist"


async def test_deleting_food_clears_carts_and_keeps_order_history(client, admin_headers, signup_user, make_food, db):
    admin = await admin_headers()
    food = await make_food("Beef Tehari", "220")
    keep = await make_food("Borhani", "60")
    customer = auth((await signup_user())["token"])

    for food_id in (food.id, keep.id):
        await client.post("/api/cart/items", json={"food_item_id": food_id}, headers=customer)
    order = (await client.post(
        "/api/orders/checkout",
        json={"delivery_address": "Mirpur 10", "phone": "01811000000"},
        headers=customer,
    )).json()
    await client.post("/api/cart/items", json={"food_item_id": food.id}, headers=customer)

    resp = await client.delete(f"/api/admin/food-items/{food.id}", headers=admin)
    assert resp.status_code == 204

    assert await db.scalar(select(func.count(CartItem.id)).where(CartItem.food_item_id == food.id)) == 0
    rows = (await db.execute(select(OrderItem.food_item_id, OrderItem.price))).all()
    assert sorted(rows, key=lambda r: r.price) == [(keep.id, Decimal("60.00")), (None, Decimal("220.00"))]

    history = (await client.get(f"/api/orders/{order['id']}", headers=customer)).json()
    assert Decimal(history["total_amount"]) == Decimal("280.00")
    assert sorted(i["name"] or "" for i in history["items"]) == ["", "Borhani"]


async def test_category_crud_and_detach(client, admin_headers, db):
    admin = await admin_headers()

    resp = await client.post(
        "/api/admin/categories",
        json={"name": "Desserts", "description": "Sweet things", "display_order": 5},
        headers=admin,
    )
    assert resp.status_code == 201
    category = resp.json()

    resp = await client.put(
        f"/api/admin/categories/{category['id']}",
        json={"name": "Sweets", "display_order": 1},
        headers=admin,
    )
    assert resp.json()["name"] == "Sweets"

    food = (await client.post(
        "/api/admin/food-items",
        json={"name": "Rasmalai", "price": "90", "category_id": category["id"]},
        headers=admin,
    )).json()

    resp = await client.delete(f"/api/admin/categories/{category['id']}", headers=admin)
    assert resp.status_code == 204
    assert (await client.get("/api/admin/categories", headers=admin)).json() == []

    category_id = await db.scalar(select(FoodItem.category_id).where(FoodItem.id == food["id"]))
    assert category_id is None

    menu = (await client.get("/api/catalog/food-items")).json()
    assert [(i["name"], i["category_name"]) for i in menu] == [("Rasmalai", None)]

    resp = await client.put("/api/admin/categories/999", json={"name": "Ghost"}, headers=admin)
    assert resp.status_code == 404


# =============================================================================
# INVOICES
# =============================================================================

@pytest.fixture
def queued(monkeypatch):
    calls = []

    def fake_delay(file_path, filename):
        calls.append((file_path, filename))
        return SimpleNamespace(id="task-123")

    monkeypatch.setattr(invoices.forward_invoice, "delay", fake_delay)
    return calls


async def test_invoice_upload_is_stored_and_queued(client, admin_headers, queued, tmp_path):
    admin = await admin_headers()

    resp = await client.post(
        "/api/admin/invoices",
        files={"file": ("Supplier Invoice.PDF", b"%PDF-1.4 invoice", "application/pdf")},
        headers=admin,
    )
    assert resp.status_code == 202, resp.text
    body = resp.json()
    assert body["task_id"] == "task-123"
    assert body["filename"] == "Supplier Invoice.PDF"
    assert body["size_bytes"] == len(b"%PDF-1.4 invoice")

    [(stored_path, filename)] = queued
    assert filename == "Supplier Invoice.PDF"
    assert stored_path.startswith(str(tmp_path))
    with open(stored_path, "rb") as fh:
        assert fh.read() == b"%PDF-1.4 invoice"


@pytest.mark.parametrize("name", ["invoice.csv", "invoice", "invoice.pdf.exe"])
async def test_invoice_wrong_type_is_refused(name, client, admin_headers, queued):
    admin = await admin_headers()
    resp = await client.post(
        "/api/admin/invoices",
        files={"file": (name, b"data", "application/octet-stream")},
        headers=admin,
    )
    assert resp.status_code == 400
    assert queued == []


async def test_invoice_empty_and_oversized(client, admin_headers, queued, monkeypatch):
    admin = await admin_headers()

    resp = await client.post(
        "/api/admin/invoices",
        files={"file": ("invoice.xlsx", b"", "application/octet-stream")},
        headers=admin,
    )
    assert resp.status_code == 400

    monkeypatch.setattr(get_settings(), "max_invoice_bytes", 8)
    resp = await client.post(
        "/api/admin/invoices",
        files={"file": ("invoice.xls", b"123456789", "application/vnd.ms-excel")},
        headers=admin,
    )
    assert resp.status_code == 413
    assert queued == []


async def test_invoice_status(client, admin_headers, monkeypatch):
    admin = await admin_headers()

    class FakeResult:
        def __init__(self, task_id, app=None):
            self.state = "SUCCESS"
            self.result = {"success": True, "filename": "invoice.pdf"}

        def ready(self):
            return True

    monkeypatch.setattr(invoices, "AsyncResult", FakeResult)
    resp = await client.get("/api/admin/invoices/task-123", headers=admin)
    assert resp.status_code == 200
    assert resp.json() == {
        "task_id": "task-123",
        "state": "SUCCESS",
        "result": {"success": True, "filename": "invoice.pdf"},
    }


def test_forward_invoice_posts_multipart(tmp_path, monkeypatch):
    path = tmp_path / "abc_invoice.pdf"
    path.write_bytes(b"%PDF-1.4")
    monkeypatch.setattr(get_settings(), "invoice_webhook_url", "https://automation.example.org/invoice")

    seen = {}

    def fake_post(url, files, timeout):
        name, fh, content_type = files["file"]
        seen.update(url=url, name=name, content=fh.read(), content_type=content_type)
        return httpx.Response(200, request=httpx.Request("POST", url))

    monkeypatch.setattr("storefront.tasks.httpx.post", fake_post)

    result = forward_invoice.apply(args=(str(path), "invoice.pdf")).get()
    assert result["success"] is True
    assert result["status_code"] == 200
    assert seen == {
        "url": "https://automation.example.org/invoice",
        "name": "invoice.pdf",
        "content": b"%PDF-1.4",
        "content_type": "application/pdf",
    }


def test_forward_invoice_without_webhook(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "invoice_webhook_url", None)
    result = forward_invoice.apply(args=(str(tmp_path / "x.pdf"), "x.pdf")).get()
    assert result["success"] is False
