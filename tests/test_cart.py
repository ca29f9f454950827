from decimal import Decimal

import pytest
from sqlalchemy import delete, func, select

from storefront.database import async_session_maker
from storefront.models import CartItem, FoodItem
from storefront.services.cart import (
    CartError,
    FoodItemNotFound,
    FoodItemUnavailable,
    GuestCartStore,
    RemoteCartStore,
)
from storefront.services.storage import FileGuestStorage
from tests.conftest import auth


# =============================================================================
# STORE LEVEL
# =============================================================================

@pytest.fixture
def guest_store(db, tmp_path):
    def _store(namespace="session-1"):
        return GuestCartStore(db, FileGuestStorage(tmp_path / "guest.json"), namespace)
    return _store


@pytest.fixture
async def remote_store(db, signup_user):
    session = await signup_user()
    return RemoteCartStore(db, session["user_id"])


@pytest.mark.parametrize("backing", ["guest", "remote"])
async def test_adding_same_item_twice_gives_one_entry(backing, guest_store, remote_store, make_food):
    store = guest_store() if backing == "guest" else remote_store
    food = await make_food()

    assert await store.add(food.id) == 1
    assert await store.add(food.id) == 2

    lines = await store.list()
    assert len(lines) == 1
    assert lines[0].quantity == 2
    assert lines[0].name == "Chicken Biryani"
    assert lines[0].line_total == Decimal("241.00")


@pytest.mark.parametrize("backing", ["guest", "remote"])
async def test_quantity_at_or_below_zero_removes_entry(backing, guest_store, remote_store, make_food):
    store = guest_store() if backing == "guest" else remote_store
    food = await make_food()
    await store.add(food.id)
    await store.add(food.id)

    assert await store.set_quantity(food.id, -1) == 1
    assert await store.set_quantity(food.id, -5) == 0
    assert await store.list() == []


@pytest.mark.parametrize("backing", ["guest", "remote"])
async def test_adjusting_missing_entry_is_a_no_op(backing, guest_store, remote_store, make_food):
    store = guest_store() if backing == "guest" else remote_store
    food_id = (await make_food()).id

    assert await store.set_quantity(food_id, 1) is None
    assert await store.remove(food_id) is False
    assert await store.list() == []


@pytest.mark.parametrize("backing", ["guest", "remote"])
async def test_unknown_and_unavailable_items_are_refused(backing, guest_store, remote_store, make_food):
    store = guest_store() if backing == "guest" else remote_store
    sold_out = await make_food("Mutton Rezala", "300", available=False)

    with pytest.raises(FoodItemNotFound):
        await store.add(9999)
    with pytest.raises(FoodItemUnavailable):
        await store.add(sold_out.id)


async def test_guest_cart_survives_reload(db, tmp_path, make_food):
    food = await make_food()
    path = tmp_path / "guest.json"

    await GuestCartStore(db, FileGuestStorage(path), "session-1").add(food.id)

    reloaded = GuestCartStore(db, FileGuestStorage(path), "session-1")
    lines = await reloaded.list()
    assert [(line.food_item_id, line.quantity) for line in lines] == [(food.id, 1)]


async def test_guest_cart_keeps_insertion_order(guest_store, make_food):
    store = guest_store()
    first = await make_food("Vegetable Khichuri", "90")
    second = await make_food("Chicken Roast", "180")

    await store.add(second.id)
    await store.add(first.id)
    await store.add(second.id)

    assert [line.food_item_id for line in await store.list()] == [second.id, first.id]


async def test_guest_entry_for_deleted_food_has_empty_snapshot(db, guest_store, make_food):
    store = guest_store()
    food = await make_food()
    await store.add(food.id)

    await db.execute(delete(FoodItem).where(FoodItem.id == food.id))
    await db.commit()
    db.expunge_all()

    [line] = await store.list()
    assert line.food_id is None
    assert line.name == ""
    assert line.price == Decimal("0")


async def test_remote_set_quantity_is_a_single_update(db, remote_store, make_food):
    food = await make_food()
    await remote_store.add(food.id)
    await remote_store.set_quantity(food.id, 4)

    count = await db.scalar(select(func.count(CartItem.id)))
    quantity = await db.scalar(select(CartItem.quantity))
    assert count == 1
    assert quantity == 5


def racing_bump(store, on_first_miss, always_miss=False):
    """Wrap ``_bump`` so another writer acts right after the first UPDATE misses."""
    real_bump = store._bump
    calls = []

    async def _bump(food_item_id, delta):
        calls.append(food_item_id)
        if len(calls) == 1:
            await on_first_miss(food_item_id)
            return None
        if always_miss:
            return None
        return await real_bump(food_item_id, delta)

    store._bump = _bump
    return calls


async def test_remote_add_counts_a_concurrent_first_insert(db, remote_store, make_food):
    food_id = (await make_food()).id
    user_id = remote_store.user_id

    async def other_tab_inserts(food_item_id):
        async with async_session_maker() as other:
            other.add(CartItem(user_id=user_id, food_item_id=food_item_id, quantity=1))
            await other.commit()

    calls = racing_bump(remote_store, other_tab_inserts)

    assert await remote_store.add(food_id) == 2
    assert len(calls) == 2
    quantities = (await db.execute(select(CartItem.quantity))).scalars().all()
    assert quantities == [2]


async def test_remote_add_inserts_again_when_competing_row_vanishes(db, remote_store, make_food):
    food_id = (await make_food()).id
    user_id = remote_store.user_id

    async def other_tab_inserts_then_removes(food_item_id):
        async with async_session_maker() as other:
            other.add(CartItem(user_id=user_id, food_item_id=food_item_id, quantity=1))
            await other.commit()

        async def removed_before_retry(food_item_id, delta):
            async with async_session_maker() as other:
                await other.execute(delete(CartItem).where(CartItem.food_item_id == food_item_id))
                await other.commit()
            return None

        remote_store._bump = removed_before_retry

    racing_bump(remote_store, other_tab_inserts_then_removes)

    assert await remote_store.add(food_id) == 1
    quantities = (await db.execute(select(CartItem.quantity))).scalars().all()
    assert quantities == [1]


async def test_remote_add_gives_up_after_repeated_conflicts(remote_store, make_food):
    food_id = (await make_food()).id
    user_id = remote_store.user_id

    async def other_tab_inserts(food_item_id):
        async with async_session_maker() as other:
            other.add(CartItem(user_id=user_id, food_item_id=food_item_id, quantity=1))
            await other.commit()

    calls = racing_bump(remote_store, other_tab_inserts, always_miss=True)

    with pytest.raises(CartError):
        await remote_store.add(food_id)
    assert len(calls) == RemoteCartStore.MAX_ADD_ATTEMPTS


# =============================================================================
# API LEVEL
# =============================================================================

async def test_guest_cart_endpoints(client, guest_session, make_food):
    biryani = await make_food("Chicken Biryani", "120.50")
    kebab = await make_food("Seekh Kebab", "75")
    headers = auth((await guest_session())["token"])

    await client.post("/api/cart/items", json={"food_item_id": biryani.id}, headers=headers)
    await client.post("/api/cart/items", json={"food_item_id": biryani.id}, headers=headers)
    resp = await client.post("/api/cart/items", json={"food_item_id": kebab.id}, headers=headers)
    assert resp.status_code == 201

    body = resp.json()
    assert body["backing"] == "guest"
    assert body["item_count"] == 2
    assert body["total_quantity"] == 3
    assert Decimal(body["subtotal"]) == Decimal("316.00")

    resp = await client.patch(f"/api/cart/items/{kebab.id}", json={"delta": -1}, headers=headers)
    assert resp.status_code == 200
    assert [line["food_item_id"] for line in resp.json()["items"]] == [biryani.id]

    resp = await client.delete(f"/api/cart/items/{biryani.id}", headers=headers)
    assert resp.json()["items"] == []


async def test_cart_errors(client, guest_session, make_food):
    headers = auth((await guest_session())["token"])
    sold_out = await make_food("Mutton Rezala", "300", available=False)

    resp = await client.post("/api/cart/items", json={"food_item_id": 404}, headers=headers)
    assert resp.status_code == 404

    resp = await client.post("/api/cart/items", json={"food_item_id": sold_out.id}, headers=headers)
    assert resp.status_code == 409

    resp = await client.patch("/api/cart/items/1", json={"delta": 1}, headers=headers)
    assert resp.status_code == 404

    resp = await client.delete("/api/cart/items/1", headers=headers)
    assert resp.status_code == 404


async def test_user_cart_uses_remote_backing(client, signup_user, make_food):
    food = await make_food()
    headers = auth((await signup_user())["token"])

    resp = await client.post("/api/cart/items", json={"food_item_id": food.id}, headers=headers)
    assert resp.json()["backing"] == "remote"


async def test_guest_cart_is_not_merged_after_login(client, guest_session, signup_user, make_food):
    food = await make_food()
    guest_headers = auth((await guest_session())["token"])
    await client.post("/api/cart/items", json={"food_item_id": food.id}, headers=guest_headers)

    await signup_user()
    resp = await client.post(
        "/api/auth/login",
        json={"email": "ayesha@sarminkitchen.com", "password": "secret123"},
    )
    user_headers = auth(resp.json()["token"])

    user_cart = (await client.get("/api/cart", headers=user_headers)).json()
    assert user_cart["items"] == []

    guest_cart = (await client.get("/api/cart", headers=guest_headers)).json()
    assert guest_cart["total_quantity"] == 1
