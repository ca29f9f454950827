import pytest
from filelock import FileLock

from storefront.services.storage import FileGuestStorage, GUEST_CART_KEY, StorageError


@pytest.fixture
def storage(tmp_path):
    return FileGuestStorage(tmp_path / "guest.json", lock_timeout=1)


async def test_missing_key_returns_default(storage):
    assert await storage.get("session-1", GUEST_CART_KEY, []) == []
    assert await storage.get("session-1", "other") is None


async def test_namespaces_are_isolated(storage):
    await storage.set("session-1", GUEST_CART_KEY, [{"food_item_id": 1, "quantity": 2}])
    await storage.set("session-2", GUEST_CART_KEY, [])

    assert await storage.get("session-1", GUEST_CART_KEY) == [{"food_item_id": 1, "quantity": 2}]
    assert await storage.get("session-2", GUEST_CART_KEY) == []


async def test_values_survive_a_new_instance(storage, tmp_path):
    await storage.set("session-1", GUEST_CART_KEY, [{"food_item_id": 7, "quantity": 1}])

    reopened = FileGuestStorage(tmp_path / "guest.json")
    assert await reopened.get("session-1", GUEST_CART_KEY) == [{"food_item_id": 7, "quantity": 1}]


async def test_update_applies_function_to_current_value(storage):
    await storage.set("session-1", "counter", 1)
    result = await storage.update("session-1", "counter", lambda v: v + 1, 0)
    assert result == 2
    assert await storage.update("session-1", "fresh", lambda v: v + 5, 0) == 5


async def test_delete_and_clear(storage):
    await storage.set("session-1", GUEST_CART_KEY, [1])
    await storage.set("session-1", "theme", "dark")

    await storage.delete("session-1", GUEST_CART_KEY)
    assert await storage.get("session-1", GUEST_CART_KEY) is None
    assert await storage.get("session-1", "theme") == "dark"

    await storage.clear("session-1")
    assert await storage.get("session-1", "theme") is None


async def test_corrupt_file_reads_as_empty(storage, tmp_path):
    (tmp_path / "guest.json").write_text("{not json")
    assert await storage.get("session-1", GUEST_CART_KEY, []) == []


async def test_lock_timeout_raises_storage_error(tmp_path):
    storage = FileGuestStorage(tmp_path / "guest.json", lock_timeout=0.1)

    with FileLock(str(storage.lock_path)):
        with pytest.raises(StorageError):
            await storage.set("session-1", GUEST_CART_KEY, [])


async def test_health_check_creates_directory(tmp_path):
    storage = FileGuestStorage(tmp_path / "nested" / "guest.json")
    assert await storage.health_check() is True
    assert (tmp_path / "nested").is_dir()
