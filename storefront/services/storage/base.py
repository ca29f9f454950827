"""
Guest Storage Abstract Base Class

Server-side stand-in for browser local storage: a key-value JSON store
partitioned by namespace, one namespace per guest session. Holds the guest
cart under the ``guest_cart`` key.

Both FileGuestStorage and RedisGuestStorage implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable


GUEST_CART_KEY = "guest_cart"


class StorageError(Exception):
    """Raised when the storage backing cannot be read or written."""


class BaseGuestStorage(ABC):
    """
    Abstract base class for guest storage backings.

    Values must be JSON serializable. Reading a missing key returns the
    supplied default.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backing name (e.g., "file", "redis")."""
        pass

    @abstractmethod
    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        """Read one value from a namespace."""
        pass

    @abstractmethod
    async def set(self, namespace: str, key: str, value: Any) -> None:
        """Write one value into a namespace, replacing any previous value."""
        pass

    @abstractmethod
    async def update(
        self,
        namespace: str,
        key: str,
        fn: Callable[[Any], Any],
        default: Any = None,
    ) -> Any:
        """
        Atomically replace a value with ``fn(current)`` and return the result.

        ``fn`` must be a plain synchronous function; it may be called more
        than once when a concurrent writer wins the race.
        """
        pass

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> None:
        """Remove one key; missing keys are ignored."""
        pass

    @abstractmethod
    async def clear(self, namespace: str) -> None:
        """Drop a whole namespace (session teardown)."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check the backing is reachable."""
        pass
