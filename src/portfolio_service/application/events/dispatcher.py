"""In-process publish step of the outbox: event type -> ordered handlers."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from portfolio_service.domain.events.base import DomainEvent

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=DomainEvent)

EventHandler = Callable[[Any], Awaitable[None]]


class EventDispatcher:
    """Dispatch table built once at process start.

    Handlers for an event type run sequentially in subscription order. The
    first handler that raises aborts the publish and the exception reaches
    the caller; handlers after it are not invoked for that event.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = {}

    def subscribe(
        self,
        event_type: type[E],
        handler: Callable[[E], Awaitable[None]],
    ) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler]:
        return list(self._handlers.get(event_type, ()))

    async def publish(self, event: DomainEvent) -> None:
        handlers = self.handlers_for(type(event))
        if not handlers:
            logger.debug("No handlers registered for %s", event.event_type)
            return
        for handler in handlers:
            await handler(event)
