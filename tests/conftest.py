"""Shared test fixtures."""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator
from uuid import UUID

import pytest

from portfolio_service.application.dto.auth import AuthorizationToken
from portfolio_service.application.dto.authorization import UserRolesResponse
from portfolio_service.application.dto.principal import Principal
from portfolio_service.application.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
)
from portfolio_service.application.repositories.outbox import OutboxRecord
from portfolio_service.domain.entities.aggregate import AggregateRoot
from portfolio_service.domain.entities.role import (
    REGISTERED,
    ROLE_PERMISSIONS,
    SUPER_ADMIN,
    Role,
)
from portfolio_service.domain.entities.user import User
from portfolio_service.domain.events.base import DomainEvent


def make_user(
    *,
    role: Role | None = REGISTERED,
    identity_id: str | None = None,
    email: str | None = None,
) -> User:
    user_id = uuid.uuid4()
    return User(
        id=user_id,
        first_name="Ada",
        last_name="Lovelace",
        email=email or f"{user_id.hex[:8]}@example.com",
        identity_id=identity_id or f"kc-{user_id.hex[:12]}",
        roles=[role] if role is not None else [],
        version=1,
    )


@pytest.fixture
def registered_user() -> User:
    return make_user(role=REGISTERED)


@pytest.fixture
def admin_user() -> User:
    return make_user(role=SUPER_ADMIN)


@pytest.fixture
def user_principal(registered_user: User) -> Principal:
    return Principal(identity_id=registered_user.identity_id)


# --- Unit of work -----------------------------------------------------------


@dataclass
class FakeUserReader:
    _store: dict[UUID, User] = field(default_factory=dict)

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._store.get(user_id)

    async def get_by_identity_id(self, identity_id: str) -> User | None:
        for user in self._store.values():
            if user.identity_id == identity_id:
                return user
        return None


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader
    _tracked: list[AggregateRoot]

    async def add(self, user: User) -> None:
        for existing in self._reader._store.values():
            if existing.email == user.email:
                raise ConflictError("Uniqueness violation occurred")
        self._reader._store[user.id] = user
        self._tracked.append(user)

    async def update(self, user: User) -> None:
        if user.id not in self._reader._store:
            raise NotFoundError("User not found")
        self._reader._store[user.id] = user
        self._tracked.append(user)

    async def delete(self, user: User) -> None:
        if self._reader._store.pop(user.id, None) is None:
            raise NotFoundError("User not found")
        self._tracked.append(user)


@dataclass
class FakeAuthorizationReader:
    """Derives roles and permissions from the user store, counting calls."""

    _users: FakeUserReader
    roles_calls: int = 0
    permissions_calls: int = 0

    async def get_user_roles(self, identity_id: str) -> UserRolesResponse:
        self.roles_calls += 1
        user = await self._users.get_by_identity_id(identity_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserRolesResponse(user_id=user.id, roles=list(user.roles))

    async def get_user_permissions(self, identity_id: str) -> set[str]:
        self.permissions_calls += 1
        user = await self._users.get_by_identity_id(identity_id)
        if user is None or not user.roles:
            raise NotFoundError("User not found")
        return {
            str(permission.name)
            for role in user.roles
            for permission in ROLE_PERMISSIONS.get(role, ())
        }


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests.

    ``commit`` drains the events of every tracked aggregate into
    ``committed_events``, standing in for the outbox rows.
    """

    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    authorization: FakeAuthorizationReader | None = None
    committed_events: list[DomainEvent] = field(default_factory=list)
    _tracked: list[AggregateRoot] = field(default_factory=list)
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users, self._tracked)
        if self.authorization is None:
            self.authorization = FakeAuthorizationReader(self.users)

    def add_user(self, user: User) -> User:
        self.users._store[user.id] = user
        return user

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        for aggregate in self._tracked:
            self.committed_events.extend(aggregate.get_domain_events())
            aggregate.clear_domain_events()
        self._tracked.clear()
        self._committed = True

    async def rollback(self) -> None:
        self._tracked.clear()


# --- Cache ------------------------------------------------------------------


@dataclass
class FakeCache:
    """Stores values as-is; records the expiration passed to every ``set``."""

    _store: dict[str, Any] = field(default_factory=dict)
    expirations: dict[str, timedelta | None] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    async def get(self, key: str, type_: Any) -> Any | None:
        if key in self._store:
            self.hits += 1
            return self._store[key]
        self.misses += 1
        return None

    async def set(self, key: str, value: Any, expiration: timedelta | None = None) -> None:
        self._store[key] = value
        self.expirations[key] = expiration

    async def remove(self, key: str) -> None:
        self._store.pop(key, None)


class FakeRedis:
    """The slice of redis.asyncio.Redis used by RedisCacheService."""

    def __init__(self, error: Exception | None = None) -> None:
        self.data: dict[str, str] = {}
        self.ttls_ms: dict[str, int] = {}
        self._error = error

    async def get(self, key: str) -> str | None:
        if self._error:
            raise self._error
        return self.data.get(key)

    async def set(self, key: str, value: str | bytes, px: int | None = None) -> bool:
        if self._error:
            raise self._error
        self.data[key] = value.decode() if isinstance(value, bytes) else value
        if px is not None:
            self.ttls_ms[key] = px
        return True

    async def delete(self, key: str) -> int:
        if self._error:
            raise self._error
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        return True


# --- Identity provider ------------------------------------------------------


@dataclass
class FakeIdentityProvider:
    error: Exception | None = None
    registered: list[tuple[User, str]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    passwords: dict[str, str] = field(default_factory=dict)
    refresh_tokens: set[str] = field(default_factory=set)

    async def register(self, user: User, password: str) -> str:
        if self.error is not None:
            raise self.error
        self.registered.append((user, password))
        return f"kc-{uuid.uuid4().hex[:12]}"

    async def delete(self, identity_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.deleted.append(identity_id)

    def _issue(self) -> AuthorizationToken:
        token = AuthorizationToken(
            access_token=f"access-{uuid.uuid4().hex}",
            refresh_token=f"refresh-{uuid.uuid4().hex}",
        )
        self.refresh_tokens.add(token.refresh_token)
        return token

    async def login(self, email: str, password: str) -> AuthorizationToken:
        if self.error is not None:
            raise self.error
        if self.passwords.get(email) != password:
            raise AuthenticationError("The provided credentials were invalid")
        return self._issue()

    async def renew_token(self, refresh_token: str) -> AuthorizationToken:
        if refresh_token not in self.refresh_tokens:
            raise AuthenticationError("The user provided invalid refresh token")
        self.refresh_tokens.discard(refresh_token)
        return self._issue()


# --- Outbox -----------------------------------------------------------------


@dataclass
class OutboxRow:
    id: UUID
    occurred_on_utc: datetime
    type: str
    content: dict[str, Any]
    processed_on_utc: datetime | None = None
    error: str | None = None


class InMemoryOutboxTable:
    """outbox_messages with row locks held per transaction.

    ``claim_pending`` skips rows locked by another open transaction. Marks
    become visible and locks are released only on commit; rollback (or
    leaving the transaction without commit) discards both.
    """

    def __init__(self) -> None:
        self.rows: dict[UUID, OutboxRow] = {}
        self.locked: set[UUID] = set()
        self.commits = 0
        self.rollbacks = 0
        self.fail_next_commit: Exception | None = None
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def insert(
        self,
        event_type: str,
        content: dict[str, Any],
        occurred_on_utc: datetime | None = None,
    ) -> UUID:
        if occurred_on_utc is None:
            self._clock += timedelta(seconds=1)
            occurred_on_utc = self._clock
        row_id = uuid.uuid4()
        self.rows[row_id] = OutboxRow(row_id, occurred_on_utc, event_type, content)
        return row_id

    def pending(self) -> list[OutboxRow]:
        return [row for row in self.rows.values() if row.processed_on_utc is None]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[FakeOutboxUoW]:
        uow = FakeOutboxUoW(self)
        try:
            yield uow
        finally:
            if uow.open:
                uow.release()
                self.rollbacks += 1


class FakeOutboxTransaction:
    def __init__(self, table: InMemoryOutboxTable) -> None:
        self._table = table
        self.claimed: set[UUID] = set()
        self.marks: dict[UUID, tuple[datetime, str | None]] = {}

    async def claim_pending(self, batch_size: int) -> list[OutboxRecord]:
        candidates = sorted(
            (
                row
                for row in self._table.pending()
                if row.id not in self._table.locked
            ),
            key=lambda row: row.occurred_on_utc,
        )[:batch_size]
        for row in candidates:
            self._table.locked.add(row.id)
            self.claimed.add(row.id)
        return [
            OutboxRecord(row.id, row.occurred_on_utc, row.type, dict(row.content))
            for row in candidates
        ]

    async def mark_processed(
        self,
        record_id: UUID,
        processed_on_utc: datetime,
        error: str | None,
    ) -> None:
        self.marks[record_id] = (processed_on_utc, error)

    async def count_pending(self) -> int:
        return len(self._table.pending())


class FakeOutboxUoW:
    def __init__(self, table: InMemoryOutboxTable) -> None:
        self._table = table
        self.outbox = FakeOutboxTransaction(table)
        self.open = True

    def release(self) -> None:
        self._table.locked -= self.outbox.claimed
        self.open = False

    async def commit(self) -> None:
        if self._table.fail_next_commit is not None:
            error, self._table.fail_next_commit = self._table.fail_next_commit, None
            raise error
        for record_id, (processed_on_utc, error) in self.outbox.marks.items():
            row = self._table.rows[record_id]
            row.processed_on_utc = processed_on_utc
            row.error = error
        self._table.commits += 1
        self.release()


@dataclass
class FixedClock:
    now: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def utc_now(self) -> datetime:
        return self.now
