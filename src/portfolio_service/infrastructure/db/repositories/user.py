from __future__ import annotations

from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_service.application.exceptions import ConcurrencyError, NotFoundError
from portfolio_service.domain.entities.aggregate import AggregateRoot
from portfolio_service.domain.entities.user import User
from portfolio_service.infrastructure.db.mappers import user as mapper
from portfolio_service.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        model = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(model) if model else None

    async def get_by_identity_id(self, identity_id: str) -> User | None:
        stmt = select(UserModel).where(UserModel.identity_id == identity_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class UserWriterRepo:
    """Stages user changes in the session and tracks the aggregate.

    Nothing is flushed here; constraint and version checks fire when the
    unit of work commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        track: Callable[[AggregateRoot], None],
    ) -> None:
        self._session = session
        self._track = track

    async def _load_for_write(self, user: User) -> UserModel:
        # Compare against the version the entity was read at; a commit that
        # lands after this SELECT is caught by version_id_col at flush.
        model = await self._session.get(UserModel, user.id)
        if model is None:
            raise NotFoundError("User not found")
        if model.version != user.version:
            raise ConcurrencyError("Concurrency exception occurred")
        return model

    async def add(self, user: User) -> None:
        self._session.add(mapper.entity_to_model(user))
        self._track(user)

    async def update(self, user: User) -> None:
        model = await self._load_for_write(user)
        model.first_name = user.first_name
        model.last_name = user.last_name
        model.email = user.email
        model.identity_id = user.identity_id
        self._track(user)

    async def delete(self, user: User) -> None:
        model = await self._load_for_write(user)
        await self._session.delete(model)
        self._track(user)
