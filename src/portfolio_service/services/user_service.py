from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from portfolio_service.application.dto.auth import AuthorizationToken
from portfolio_service.application.dto.principal import Principal
from portfolio_service.application.dto.user import (
    LogInUserCommand,
    RegisterUserCommand,
    UpdateUserCommand,
    UserDTO,
)
from portfolio_service.application.exceptions import NotFoundError, ValidationError
from portfolio_service.application.ports.cache import CacheService
from portfolio_service.application.ports.identity import IdentityProvider
from portfolio_service.application.uow import UnitOfWork
from portfolio_service.domain.entities.role import role_from_name
from portfolio_service.domain.entities.user import User
from portfolio_service.services.authorization_service import (
    permissions_cache_key,
    roles_cache_key,
)

logger = logging.getLogger(__name__)


def user_cache_key(user_id: UUID) -> str:
    return f"GetUserQuery-{user_id}"


def to_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        roles=[role.name for role in user.roles],
    )


async def register_user(
    command: RegisterUserCommand,
    identity_provider: IdentityProvider,
    uow: UnitOfWork,
) -> UUID:
    """Create the identity, then persist the user and its registration event together."""
    try:
        role = role_from_name(command.role)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    user = User.register(command.first_name, command.last_name, command.email, role)

    identity_id = await identity_provider.register(user, command.password)
    user.set_identity_id(identity_id)

    await uow.users_w.add(user)
    await uow.commit()
    logger.info("Registered user %s with identity %s", user.id, identity_id)
    return user.id


async def get_user(
    user_id: UUID,
    uow: UnitOfWork,
    cache: CacheService,
    expiration: timedelta,
) -> UserDTO:
    """Cached under ``GetUserQuery-{id}`` for ``expiration``; evicted on update and delete."""
    cache_key = user_cache_key(user_id)
    cached = await cache.get(cache_key, UserDTO)
    if cached is not None:
        return cached

    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("The user with specified identifier was not found")

    dto = to_dto(user)
    await cache.set(cache_key, dto, expiration)
    return dto


async def get_logged_in_user(principal: Principal, uow: UnitOfWork) -> UserDTO:
    user = await uow.users.get_by_identity_id(principal.identity_id)
    if user is None:
        raise NotFoundError("The user with specified identifier was not found")
    return to_dto(user)


async def update_user(
    command: UpdateUserCommand,
    uow: UnitOfWork,
    cache: CacheService,
) -> UserDTO:
    user = await uow.users.get_by_id(command.user_id)
    if user is None:
        raise NotFoundError("The user with specified identifier was not found")

    user.update_name(command.first_name, command.last_name)
    await uow.users_w.update(user)
    await uow.commit()

    await cache.remove(user_cache_key(user.id))
    return to_dto(user)


async def delete_user(
    user_id: UUID,
    identity_provider: IdentityProvider,
    uow: UnitOfWork,
    cache: CacheService,
) -> None:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("The user with specified identifier was not found")

    await identity_provider.delete(user.identity_id)
    await uow.users_w.delete(user)
    await uow.commit()

    for key in (
        user_cache_key(user.id),
        roles_cache_key(user.identity_id),
        permissions_cache_key(user.identity_id),
    ):
        await cache.remove(key)
    logger.info("Deleted user %s with identity %s", user.id, user.identity_id)


async def login_user(
    command: LogInUserCommand,
    identity_provider: IdentityProvider,
) -> AuthorizationToken:
    return await identity_provider.login(command.email, command.password)


async def renew_authorization(
    refresh_token: str,
    identity_provider: IdentityProvider,
) -> AuthorizationToken:
    return await identity_provider.renew_token(refresh_token)
