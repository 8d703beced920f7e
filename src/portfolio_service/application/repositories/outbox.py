from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True, slots=True)
class OutboxMessage:
    """A new outbox row built from a domain event at commit time."""

    id: UUID
    occurred_on_utc: datetime
    type: str
    content: dict[str, Any]


class OutboxRecord:
    """Lightweight read-model for the outbox dispatcher."""

    __slots__ = ("id", "occurred_on_utc", "type", "content")

    def __init__(
        self,
        id: UUID,
        occurred_on_utc: datetime,
        type: str,
        content: dict[str, Any],
    ) -> None:
        self.id = id
        self.occurred_on_utc = occurred_on_utc
        self.type = type
        self.content = content


class OutboxStore(Protocol):
    async def claim_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Lock up to ``batch_size`` pending rows until the transaction ends.

        Rows locked by another transaction are skipped, never waited on.
        """
        ...

    async def mark_processed(
        self,
        record_id: UUID,
        processed_on_utc: datetime,
        error: str | None,
    ) -> None: ...

    async def count_pending(self) -> int: ...
