"""
Guest Storage Factory

Returns the file backing in development and the Redis backing otherwise.

Usage:
    from storefront.services.storage import get_guest_storage

    storage = get_guest_storage()
    cart = await storage.get(session.storage_namespace, GUEST_CART_KEY, [])
"""

import logging
from functools import lru_cache
from pathlib import Path

from storefront.core.config import get_settings
from storefront.services.storage.base import (
    BaseGuestStorage,
    StorageError,
    GUEST_CART_KEY,
)
from storefront.services.storage.file import FileGuestStorage
from storefront.services.storage.redis_store import RedisGuestStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_guest_storage() -> BaseGuestStorage:
    """Get the configured guest storage backing."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Guest Storage: Using FileGuestStorage (development mode)")
        return FileGuestStorage(
            file_path=Path(settings.data_directory) / settings.guest_storage_filename,
            lock_timeout=settings.storage_lock_timeout,
        )
    else:
        logger.info(f"Guest Storage: Using RedisGuestStorage ({settings.env_mode.value} mode)")
        return RedisGuestStorage(
            redis_url=settings.redis_url,
            ttl_seconds=settings.guest_session_ttl_hours * 3600,
        )


def reset_guest_storage() -> None:
    """Clear the cached storage instance."""
    get_guest_storage.cache_clear()


__all__ = [
    "get_guest_storage",
    "reset_guest_storage",
    "BaseGuestStorage",
    "FileGuestStorage",
    "RedisGuestStorage",
    "StorageError",
    "GUEST_CART_KEY",
]
