"""
File Guest Storage

Development backing: every namespace lives in one JSON document on disk.
Each operation is a read-modify-write guarded by a FileLock, so several
worker processes can share the file without losing updates.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable

from filelock import FileLock, Timeout

from storefront.services.storage.base import BaseGuestStorage, StorageError

logger = logging.getLogger(__name__)


class FileGuestStorage(BaseGuestStorage):
    """JSON-file guest storage with file locking."""

    def __init__(self, file_path: Path, lock_timeout: int = 10):
        self.file_path = Path(file_path)
        self.lock_path = self.file_path.with_name(self.file_path.name + ".lock")
        self.lock_timeout = lock_timeout

        logger.info(f"FileGuestStorage initialized ({self.file_path})")

    @property
    def provider_name(self) -> str:
        return "file"

    def _ensure_dir(self) -> None:
        if not self.file_path.parent.exists():
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.file_path.parent}")

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.file_path.exists():
            return {}
        try:
            return json.loads(self.file_path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt guest storage file {self.file_path}: {e}")
            return {}

    def _dump(self, data: dict[str, dict[str, Any]]) -> None:
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.file_path)

    def _locked(self, fn):
        self._ensure_dir()
        try:
            with FileLock(str(self.lock_path), timeout=self.lock_timeout):
                return fn()
        except Timeout:
            logger.error(f"Guest storage lock timeout ({self.lock_timeout}s)")
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)")

    def _get_sync(self, namespace: str, key: str, default: Any) -> Any:
        def op():
            return self._load().get(namespace, {}).get(key, default)
        return self._locked(op)

    def _set_sync(self, namespace: str, key: str, value: Any) -> None:
        def op():
            data = self._load()
            data.setdefault(namespace, {})[key] = value
            self._dump(data)
        self._locked(op)

    def _update_sync(self, namespace: str, key: str, fn: Callable[[Any], Any], default: Any) -> Any:
        def op():
            data = self._load()
            value = fn(data.get(namespace, {}).get(key, default))
            data.setdefault(namespace, {})[key] = value
            self._dump(data)
            return value
        return self._locked(op)

    def _delete_sync(self, namespace: str, key: str) -> None:
        def op():
            data = self._load()
            bucket = data.get(namespace)
            if bucket and key in bucket:
                del bucket[key]
                if not bucket:
                    del data[namespace]
                self._dump(data)
        self._locked(op)

    def _clear_sync(self, namespace: str) -> None:
        def op():
            data = self._load()
            if namespace in data:
                del data[namespace]
                self._dump(data)
        self._locked(op)

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self._get_sync, namespace, key, default)

    async def set(self, namespace: str, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set_sync, namespace, key, value)

    async def update(
        self,
        namespace: str,
        key: str,
        fn: Callable[[Any], Any],
        default: Any = None,
    ) -> Any:
        return await asyncio.to_thread(self._update_sync, namespace, key, fn, default)

    async def delete(self, namespace: str, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, namespace, key)

    async def clear(self, namespace: str) -> None:
        await asyncio.to_thread(self._clear_sync, namespace)
        logger.debug(f"Guest namespace cleared: {namespace}")

    async def health_check(self) -> bool:
        try:
            self._ensure_dir()
            return True
        except OSError as e:
            logger.error(f"Guest storage health check failed: {e}")
            return False
