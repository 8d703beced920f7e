from __future__ import annotations

import logging

from portfolio_service.application.dto.authorization import UserRolesResponse
from portfolio_service.application.exceptions import NotFoundError
from portfolio_service.application.ports.cache import CacheService
from portfolio_service.application.repositories.authorization import AuthorizationReader

logger = logging.getLogger(__name__)


def roles_cache_key(identity_id: str) -> str:
    return f"auth:roles-{identity_id}"


def permissions_cache_key(identity_id: str) -> str:
    return f"auth:permissions-{identity_id}"


class AuthorizationService:
    """Read-through cache of roles and permission names per identity.

    Entries use the cache's default TTL and are never invalidated
    explicitly, so a role or permission change is visible only once the
    entry expires. Concurrent misses may each hit the database; the last
    write wins.
    """

    def __init__(self, reader: AuthorizationReader, cache: CacheService) -> None:
        self._reader = reader
        self._cache = cache

    async def get_roles_for_user(self, identity_id: str) -> UserRolesResponse:
        cache_key = roles_cache_key(identity_id)
        cached = await self._cache.get(cache_key, UserRolesResponse)
        if cached is not None:
            return cached

        roles = await self._reader.get_user_roles(identity_id)
        await self._cache.set(cache_key, roles)
        return roles

    async def get_permissions_for_user(self, identity_id: str) -> set[str]:
        cache_key = permissions_cache_key(identity_id)
        cached = await self._cache.get(cache_key, set[str])
        if cached is not None:
            return cached

        permissions = await self._reader.get_user_permissions(identity_id)
        await self._cache.set(cache_key, permissions)
        return permissions

    async def has_permission(self, identity_id: str, permission: str) -> bool:
        """Unknown identities and users without roles are denied."""
        try:
            permissions = await self.get_permissions_for_user(identity_id)
        except NotFoundError:
            logger.info("Denying %s to unknown identity %s", permission, identity_id)
            return False
        return permission in permissions
