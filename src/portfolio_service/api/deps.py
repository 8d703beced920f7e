"""FastAPI dependency injection helpers."""
from __future__ import annotations

import dataclasses
import logging
from datetime import timedelta
from typing import Annotated, AsyncIterator, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_service.application.dto.principal import Principal
from portfolio_service.application.exceptions import ForbiddenError, NotFoundError
from portfolio_service.application.ports.auth import TokenVerifier
from portfolio_service.application.ports.cache import CacheService
from portfolio_service.application.ports.identity import IdentityProvider
from portfolio_service.config import settings
from portfolio_service.infrastructure.auth.hs256_verifier import HS256Verifier
from portfolio_service.infrastructure.auth.jwks_verifier import JWKSVerifier
from portfolio_service.infrastructure.auth.keycloak import KeycloakIdentityProvider
from portfolio_service.infrastructure.cache.redis_cache import RedisCacheService
from portfolio_service.infrastructure.db.session import AsyncSessionLocal
from portfolio_service.infrastructure.db.uow import SqlAlchemyUoW
from portfolio_service.services.authorization_service import AuthorizationService

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_cache(request: Request) -> CacheService:
    return RedisCacheService(
        request.app.state.redis,
        timedelta(seconds=settings.CACHE_DEFAULT_TTL_SECONDS),
    )


CacheDep = Annotated[CacheService, Depends(get_cache)]


def get_cached_query_expiration() -> timedelta:
    return timedelta(seconds=settings.CACHED_QUERY_TTL_SECONDS)


CachedQueryExpirationDep = Annotated[timedelta, Depends(get_cached_query_expiration)]


def get_authorization_service(uow: UoWDep, cache: CacheDep) -> AuthorizationService:
    return AuthorizationService(uow.authorization, cache)


AuthorizationDep = Annotated[AuthorizationService, Depends(get_authorization_service)]


def get_identity_provider(request: Request) -> IdentityProvider:
    return KeycloakIdentityProvider(
        request.app.state.keycloak_client,
        settings.KEYCLOAK_TOKEN_URL,
        settings.KEYCLOAK_ADMIN_CLIENT_ID,
        settings.KEYCLOAK_ADMIN_CLIENT_SECRET,
        settings.KEYCLOAK_AUTH_CLIENT_ID,
        settings.KEYCLOAK_AUTH_CLIENT_SECRET,
    )


IdentityProviderDep = Annotated[IdentityProvider, Depends(get_identity_provider)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL, settings.JWT_AUDIENCE, settings.JWT_ISSUER)
    return HS256Verifier(
        settings.JWT_SECRET,
        settings.JWT_ALGORITHM,
        settings.JWT_AUDIENCE,
        settings.JWT_ISSUER,
    )


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    authorization: AuthorizationDep,
) -> Principal:
    verifier = get_verifier()
    try:
        principal = await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    if principal.is_enriched:
        return principal

    # Claims enrichment: local user id and role names from the authorization cache
    try:
        user_roles = await authorization.get_roles_for_user(principal.identity_id)
    except NotFoundError:
        logger.info("Authenticated identity %s has no local user", principal.identity_id)
        return principal
    return dataclasses.replace(
        principal,
        user_id=user_roles.user_id,
        roles=[role.name for role in user_roles.roles],
    )


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_permission(permission: str) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: pass iff ``permission`` is in the caller's permission set."""

    async def _require(
        principal: CurrentPrincipal,
        authorization: AuthorizationDep,
    ) -> Principal:
        if not await authorization.has_permission(principal.identity_id, permission):
            raise ForbiddenError(f"Permission {permission} required")
        return principal

    return _require
