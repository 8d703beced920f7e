"""Outbox dispatcher: claims pending outbox rows and publishes them in-process.

Runs inside the API process (started from the app lifespan) or standalone:
``python -m portfolio_service.workers.outbox_worker``.
"""
from __future__ import annotations

import asyncio
import logging
import traceback
from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_service.application.events.dispatcher import EventDispatcher
from portfolio_service.application.events.handlers import build_event_dispatcher
from portfolio_service.application.ports.clock import Clock, SystemClock
from portfolio_service.application.repositories.outbox import OutboxRecord
from portfolio_service.application.uow import OutboxUnitOfWork
from portfolio_service.config import settings
from portfolio_service.infrastructure.db.session import AsyncSessionLocal
from portfolio_service.infrastructure.db.uow import open_uow
from portfolio_service.infrastructure.outbox.serializer import EventSerializer
from portfolio_service.logging_config import configure_logging

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[OutboxUnitOfWork]]


class OutboxProcessor:
    """Processes one batch per ``process_batch`` call.

    The claim, every per-row update and the final commit share one
    transaction. A row whose handler fails is still marked processed, with
    the traceback in ``error``. If the run dies before commit (crash,
    cancellation, lost connection) every claimed row stays pending and is
    delivered again by a later run.
    """

    def __init__(
        self,
        uow_factory: UoWFactory,
        dispatcher: EventDispatcher,
        serializer: EventSerializer,
        clock: Clock,
        batch_size: int,
    ) -> None:
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._serializer = serializer
        self._clock = clock
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def process_batch(self) -> int:
        """Return the number of rows marked processed."""
        async with self._uow_factory() as uow:
            batch = await uow.outbox.claim_pending(self._batch_size)
            if not batch:
                return 0

            logger.info("Beginning to process %d outbox messages", len(batch))
            failed = 0
            for record in batch:
                error = await self._publish(record)
                if error is not None:
                    failed += 1
                await uow.outbox.mark_processed(record.id, self._clock.utc_now(), error)

            await uow.commit()

        logger.info(
            "Completed processing outbox messages (processed=%d, failed=%d)",
            len(batch),
            failed,
        )
        return len(batch)

    async def _publish(self, record: OutboxRecord) -> str | None:
        try:
            event = self._serializer.deserialize(record.type, record.content)
            await self._dispatcher.publish(event)
        except Exception:
            logger.exception("Exception while processing outbox message %s", record.id)
            return traceback.format_exc()
        return None


class OutboxWorker:
    """Runs an OutboxProcessor every ``interval_seconds`` as a background task."""

    def __init__(self, processor: OutboxProcessor, interval_seconds: float) -> None:
        self._processor = processor
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self.run(), name="outbox-dispatcher")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Outbox worker stopped")

    async def run(self) -> None:
        logger.info(
            "Outbox worker started (interval=%.1fs, batch=%d)",
            self._interval,
            self._processor.batch_size,
        )
        while True:
            try:
                await self._processor.process_batch()
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(self._interval)


def build_outbox_processor(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    batch_size: int | None = None,
) -> OutboxProcessor:
    return OutboxProcessor(
        uow_factory=lambda: open_uow(session_factory),
        dispatcher=build_event_dispatcher(),
        serializer=EventSerializer(),
        clock=SystemClock(),
        batch_size=batch_size or settings.OUTBOX_BATCH_SIZE,
    )


async def run_outbox_worker() -> None:
    worker = OutboxWorker(build_outbox_processor(), settings.OUTBOX_INTERVAL_SECONDS)
    await worker.run()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
