from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class CacheService(Protocol):
    """Key/value cache with per-entry expiry.

    ``expiration=None`` applies the backend's default TTL.
    """

    async def get(self, key: str, type_: type[T] | Any) -> T | None: ...

    async def set(
        self,
        key: str,
        value: Any,
        expiration: timedelta | None = None,
    ) -> None: ...

    async def remove(self, key: str) -> None: ...
