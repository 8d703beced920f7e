from __future__ import annotations

from typing import Protocol

from portfolio_service.application.dto.auth import AuthorizationToken
from portfolio_service.domain.entities.user import User


class IdentityProvider(Protocol):
    async def register(self, user: User, password: str) -> str:
        """Create the identity for ``user`` and return its identity id."""
        ...

    async def delete(self, identity_id: str) -> None: ...

    async def login(self, email: str, password: str) -> AuthorizationToken:
        """Raise AuthenticationError if the credentials are rejected."""
        ...

    async def renew_token(self, refresh_token: str) -> AuthorizationToken:
        """Raise AuthenticationError if the refresh token is rejected."""
        ...
