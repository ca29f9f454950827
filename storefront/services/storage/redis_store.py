"""
Redis Guest Storage

Production backing: one Redis hash per namespace, each field a JSON value.
Namespaces expire together with the guest session that owns them.
"""

import json
import logging
from typing import Any, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from storefront.services.storage.base import BaseGuestStorage, StorageError

logger = logging.getLogger(__name__)


class RedisGuestStorage(BaseGuestStorage):
    """Redis hash guest storage."""

    KEY_PREFIX = "guest"

    def __init__(self, redis_url: str, ttl_seconds: Optional[int] = None):
        self._client = aioredis.from_url(redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds
        logger.info("RedisGuestStorage initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _key(self, namespace: str) -> str:
        return f"{self.KEY_PREFIX}:{namespace}"

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        try:
            raw = await self._client.hget(self._key(namespace), key)
        except RedisError as e:
            raise StorageError(str(e)) from e
        if raw is None:
            return default
        return json.loads(raw)

    async def set(self, namespace: str, key: str, value: Any) -> None:
        redis_key = self._key(namespace)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.hset(redis_key, key, json.dumps(value))
                if self.ttl_seconds:
                    pipe.expire(redis_key, self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            raise StorageError(str(e)) from e

    async def update(
        self,
        namespace: str,
        key: str,
        fn: Callable[[Any], Any],
        default: Any = None,
    ) -> Any:
        redis_key = self._key(namespace)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(redis_key)
                        raw = await pipe.hget(redis_key, key)
                        value = fn(json.loads(raw) if raw is not None else default)
                        pipe.multi()
                        pipe.hset(redis_key, key, json.dumps(value))
                        if self.ttl_seconds:
                            pipe.expire(redis_key, self.ttl_seconds)
                        await pipe.execute()
                        return value
                    except WatchError:
                        logger.debug(f"Concurrent write on {redis_key}, retrying")
                        continue
        except RedisError as e:
            raise StorageError(str(e)) from e

    async def delete(self, namespace: str, key: str) -> None:
        try:
            await self._client.hdel(self._key(namespace), key)
        except RedisError as e:
            raise StorageError(str(e)) from e

    async def clear(self, namespace: str) -> None:
        try:
            await self._client.delete(self._key(namespace))
        except RedisError as e:
            raise StorageError(str(e)) from e

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
