"""Redis-backed CacheService storing pydantic-encoded JSON values."""
from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Any

import redis.asyncio as aioredis
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_EXPIRATION = timedelta(minutes=1)


@lru_cache(maxsize=128)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


class RedisCacheService:
    """Implements application.ports.cache.CacheService.

    Backend failures never escape: a failed or undecodable read is
    reported as a miss and a failed write is dropped, so callers fall
    through to their source of truth. Both are logged.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        default_expiration: timedelta = DEFAULT_EXPIRATION,
    ) -> None:
        self._redis = redis
        self._default_expiration = default_expiration

    async def get(self, key: str, type_: Any) -> Any | None:
        try:
            raw = await self._redis.get(key)
        except RedisError:
            logger.warning("Cache read failed for %s, treating as miss", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return _adapter(type_).validate_json(raw)
        except ValidationError:
            logger.warning("Cached value for %s does not decode, treating as miss", key)
            return None

    async def set(
        self,
        key: str,
        value: Any,
        expiration: timedelta | None = None,
    ) -> None:
        ttl = expiration if expiration is not None else self._default_expiration
        raw = _adapter(type(value)).dump_json(value)
        try:
            await self._redis.set(key, raw, px=int(ttl.total_seconds() * 1000))
        except RedisError:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    async def remove(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError:
            logger.warning("Cache delete failed for %s", key, exc_info=True)
