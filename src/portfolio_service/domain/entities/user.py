from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from uuid import UUID

from portfolio_service.domain.entities.aggregate import AggregateRoot
from portfolio_service.domain.entities.role import Role
from portfolio_service.domain.events.user_registered import UserRegisteredDomainEvent


@dataclass(eq=False)
class User(AggregateRoot):
    id: UUID
    first_name: str
    last_name: str
    email: str
    identity_id: str = ""
    roles: list[Role] = field(default_factory=list)
    # version the row was read at; 0 until first persisted
    version: int = 0

    @classmethod
    def register(
        cls,
        first_name: str,
        last_name: str,
        email: str,
        role: Role,
    ) -> User:
        """Create a new user holding ``role`` and raise UserRegisteredDomainEvent."""
        user = cls(
            id=uuid.uuid4(),
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
        user.raise_domain_event(UserRegisteredDomainEvent(user_id=user.id))
        user.roles.append(role)
        return user

    def set_identity_id(self, identity_id: str) -> None:
        self.identity_id = identity_id

    def update_name(self, first_name: str, last_name: str) -> None:
        self.first_name = first_name
        self.last_name = last_name
