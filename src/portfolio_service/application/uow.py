from __future__ import annotations

from typing import Protocol

from portfolio_service.application.repositories.authorization import AuthorizationReader
from portfolio_service.application.repositories.outbox import OutboxStore
from portfolio_service.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    authorization: AuthorizationReader

    async def commit(self) -> None:
        """Persist tracked changes plus their domain events as outbox rows.

        Raises ConcurrencyError or UniqueConstraintViolationError; in both
        cases nothing, outbox rows included, is persisted.
        """
        ...

    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


class OutboxUnitOfWork(Protocol):
    """The slice of a unit of work the outbox dispatcher needs."""

    outbox: OutboxStore

    async def commit(self) -> None: ...
