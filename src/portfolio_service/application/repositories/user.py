from __future__ import annotations

from typing import Protocol
from uuid import UUID

from portfolio_service.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...

    async def get_by_identity_id(self, identity_id: str) -> User | None: ...


class UserWriter(Protocol):
    """``update`` and ``delete`` raise ConcurrencyError when ``user.version``
    is not the stored version."""

    async def add(self, user: User) -> None: ...

    async def update(self, user: User) -> None: ...

    async def delete(self, user: User) -> None: ...
