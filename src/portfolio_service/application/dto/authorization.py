from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from portfolio_service.domain.entities.role import Role


@dataclass(slots=True)
class UserRolesResponse:
    user_id: UUID
    roles: list[Role] = field(default_factory=list)
