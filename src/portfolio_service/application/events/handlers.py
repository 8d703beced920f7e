from __future__ import annotations

import logging

from portfolio_service.application.events.dispatcher import EventDispatcher
from portfolio_service.domain.events.user_registered import UserRegisteredDomainEvent

logger = logging.getLogger(__name__)


async def log_user_registered(event: UserRegisteredDomainEvent) -> None:
    # Welcome notification hook; delivery channels live outside this service.
    logger.info("User %s registered", event.user_id)


def build_event_dispatcher() -> EventDispatcher:
    dispatcher = EventDispatcher()
    dispatcher.subscribe(UserRegisteredDomainEvent, log_user_registered)
    return dispatcher
