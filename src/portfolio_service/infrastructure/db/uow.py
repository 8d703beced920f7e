from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from types import TracebackType
from typing import AsyncIterator, Self

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from portfolio_service.application.exceptions import (
    ConcurrencyError,
    UniqueConstraintViolationError,
)
from portfolio_service.application.ports.clock import Clock, SystemClock
from portfolio_service.application.repositories.outbox import OutboxMessage
from portfolio_service.domain.entities.aggregate import AggregateRoot
from portfolio_service.infrastructure.db.repositories.authorization import (
    AuthorizationReaderRepo,
)
from portfolio_service.infrastructure.db.repositories.outbox import OutboxRepo
from portfolio_service.infrastructure.db.repositories.user import (
    UserReaderRepo,
    UserWriterRepo,
)
from portfolio_service.infrastructure.outbox.serializer import EventSerializer

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if getattr(candidate, "sqlstate", None) == UNIQUE_VIOLATION:
            return True
        if getattr(candidate, "pgcode", None) == UNIQUE_VIOLATION:
            return True
    return False


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession.

    Writer repositories register the aggregates they stage through
    ``track``. ``commit`` turns every event those aggregates buffered into
    an ``outbox_messages`` row inside the same transaction, so the entity
    change and its events become visible together or not at all.
    """

    def __init__(
        self,
        session: AsyncSession,
        serializer: EventSerializer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._serializer = serializer or EventSerializer()
        self._clock = clock or SystemClock()
        self._tracked: list[AggregateRoot] = []
        self.users = UserReaderRepo(session)
        self.users_w = UserWriterRepo(session, self.track)
        self.authorization = AuthorizationReaderRepo(session)
        self.outbox = OutboxRepo(session)

    def track(self, aggregate: AggregateRoot) -> None:
        if not any(tracked is aggregate for tracked in self._tracked):
            self._tracked.append(aggregate)

    def _outbox_messages(self) -> list[OutboxMessage]:
        """Serialize every buffered event; raises ValueError for unregistered types."""
        messages: list[OutboxMessage] = []
        for aggregate in self._tracked:
            for event in aggregate.get_domain_events():
                event_type, content = self._serializer.serialize(event)
                messages.append(
                    OutboxMessage(
                        id=uuid.uuid4(),
                        occurred_on_utc=self._clock.utc_now(),
                        type=event_type,
                        content=content,
                    )
                )
        return messages

    def _add_domain_events_as_outbox_messages(self) -> int:
        # buffers are cleared only once every event has serialized
        messages = self._outbox_messages()
        for aggregate in self._tracked:
            aggregate.clear_domain_events()
        if messages:
            self.outbox.add_many(messages)
        return len(messages)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        try:
            count = self._add_domain_events_as_outbox_messages()
        except ValueError:
            await self.rollback()
            raise

        try:
            await self._session.commit()
        except StaleDataError as exc:
            await self._session.rollback()
            raise ConcurrencyError("Concurrency exception occurred") from exc
        except IntegrityError as exc:
            await self._session.rollback()
            if _is_unique_violation(exc):
                raise UniqueConstraintViolationError("Uniqueness violation occurred") from exc
            raise
        finally:
            self._tracked.clear()

        if count:
            logger.debug("Committed %d outbox messages", count)

    async def rollback(self) -> None:
        self._tracked.clear()
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()


@asynccontextmanager
async def open_uow(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[SqlAlchemyUoW]:
    """One session, one unit of work; uncommitted work is rolled back on exit."""
    async with session_factory() as session:
        async with SqlAlchemyUoW(session) as uow:
            yield uow
