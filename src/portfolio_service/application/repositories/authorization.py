from __future__ import annotations

from typing import Protocol

from portfolio_service.application.dto.authorization import UserRolesResponse


class AuthorizationReader(Protocol):
    async def get_user_roles(self, identity_id: str) -> UserRolesResponse:
        """Raise NotFoundError if no user has ``identity_id``."""
        ...

    async def get_user_permissions(self, identity_id: str) -> set[str]:
        """Raise NotFoundError if no user has ``identity_id`` or it holds no role."""
        ...
