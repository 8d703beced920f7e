from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_service.application.repositories.outbox import OutboxMessage, OutboxRecord
from portfolio_service.infrastructure.db.models.outbox import OutboxMessageModel


def claim_pending_statement(batch_size: int) -> Select:
    """Oldest pending rows, locked for this transaction, skipping rows other claimants hold."""
    return (
        select(
            OutboxMessageModel.id,
            OutboxMessageModel.occurred_on_utc,
            OutboxMessageModel.type,
            OutboxMessageModel.content,
        )
        .where(OutboxMessageModel.processed_on_utc.is_(None))
        .order_by(OutboxMessageModel.occurred_on_utc.asc())
        .limit(batch_size)
        .with_for_update(skip_locked=True)
    )


class OutboxRepo:
    """Outbox table access.

    Shares the caller's session: ``add_many`` joins the entity transaction,
    and the claim/mark pair runs inside the dispatcher's own transaction.
    Nothing here commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def add_many(self, messages: list[OutboxMessage]) -> None:
        self._session.add_all(
            OutboxMessageModel(
                id=m.id,
                occurred_on_utc=m.occurred_on_utc,
                type=m.type,
                content=m.content,
            )
            for m in messages
        )

    async def claim_pending(self, batch_size: int) -> list[OutboxRecord]:
        result = await self._session.execute(claim_pending_statement(batch_size))
        return [
            OutboxRecord(
                id=row.id,
                occurred_on_utc=row.occurred_on_utc,
                type=row.type,
                content=row.content,
            )
            for row in result.all()
        ]

    async def mark_processed(
        self,
        record_id: UUID,
        processed_on_utc: datetime,
        error: str | None,
    ) -> None:
        stmt = (
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(processed_on_utc=processed_on_utc, error=error)
        )
        await self._session.execute(stmt)

    async def count_pending(self) -> int:
        stmt = select(func.count()).select_from(OutboxMessageModel).where(
            OutboxMessageModel.processed_on_utc.is_(None)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
