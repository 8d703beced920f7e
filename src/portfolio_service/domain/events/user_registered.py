from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from portfolio_service.domain.events.base import DomainEvent


@dataclass(frozen=True, slots=True)
class UserRegisteredDomainEvent(DomainEvent):
    user_id: UUID
