from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from portfolio_service.application.dto.principal import Principal
from portfolio_service.application.dto.user import (
    LogInUserCommand,
    RegisterUserCommand,
    UpdateUserCommand,
    UserDTO,
)
from portfolio_service.application.exceptions import (
    AuthenticationError,
    ConflictError,
    IdentityProviderError,
    NotFoundError,
    ValidationError,
)
from portfolio_service.domain.entities.role import REGISTERED
from portfolio_service.domain.events.user_registered import UserRegisteredDomainEvent
from portfolio_service.services import user_service
from portfolio_service.services.authorization_service import (
    permissions_cache_key,
    roles_cache_key,
)
from tests.conftest import FakeCache, FakeIdentityProvider, FakeUoW, make_user

EXPIRATION = timedelta(seconds=90)


def _command(role: str = "Registered", email: str = "ada@example.com") -> RegisterUserCommand:
    return RegisterUserCommand(
        email=email,
        first_name="Ada",
        last_name="Lovelace",
        password="s3cret!",
        role=role,
    )


@pytest.mark.asyncio
async def test_register_user_persists_user_and_event():
    uow = FakeUoW()
    identity_provider = FakeIdentityProvider()

    user_id = await user_service.register_user(_command(), identity_provider, uow)

    user = await uow.users.get_by_id(user_id)
    assert user is not None
    assert user.identity_id.startswith("kc-")
    assert user.roles == [REGISTERED]
    assert uow._committed is True
    assert uow.committed_events == [UserRegisteredDomainEvent(user_id=user_id)]
    assert identity_provider.registered[0][1] == "s3cret!"


@pytest.mark.asyncio
async def test_register_user_rejects_unknown_role():
    uow = FakeUoW()
    identity_provider = FakeIdentityProvider()

    with pytest.raises(ValidationError):
        await user_service.register_user(_command(role="Root"), identity_provider, uow)

    assert identity_provider.registered == []
    assert uow._committed is False


@pytest.mark.asyncio
async def test_register_user_identity_failure_persists_nothing():
    uow = FakeUoW()
    identity_provider = FakeIdentityProvider(error=ConflictError("exists"))

    with pytest.raises(ConflictError):
        await user_service.register_user(_command(), identity_provider, uow)

    assert uow.users._store == {}
    assert uow.committed_events == []


@pytest.mark.asyncio
async def test_get_user_is_cached_for_the_given_expiration():
    uow = FakeUoW()
    cache = FakeCache()
    user = uow.add_user(make_user())

    first = await user_service.get_user(user.id, uow, cache, EXPIRATION)
    del uow.users._store[user.id]
    second = await user_service.get_user(user.id, uow, cache, EXPIRATION)

    assert first == second
    assert first.email == user.email
    assert first.roles == ["Registered"]
    key = user_service.user_cache_key(user.id)
    assert key == f"GetUserQuery-{user.id}"
    assert cache.expirations[key] == EXPIRATION


@pytest.mark.asyncio
async def test_get_user_not_found():
    with pytest.raises(NotFoundError):
        await user_service.get_user(uuid.uuid4(), FakeUoW(), FakeCache(), EXPIRATION)


@pytest.mark.asyncio
async def test_get_logged_in_user(user_principal, registered_user):
    uow = FakeUoW()
    uow.add_user(registered_user)

    dto = await user_service.get_logged_in_user(user_principal, uow)

    assert dto == user_service.to_dto(registered_user)


@pytest.mark.asyncio
async def test_get_logged_in_user_without_local_user():
    with pytest.raises(NotFoundError):
        await user_service.get_logged_in_user(Principal(identity_id="kc-ghost"), FakeUoW())


@pytest.mark.asyncio
async def test_update_user_renames_and_evicts_cached_query():
    uow = FakeUoW()
    cache = FakeCache()
    user = uow.add_user(make_user())
    await user_service.get_user(user.id, uow, cache, EXPIRATION)

    dto = await user_service.update_user(
        UpdateUserCommand(user_id=user.id, first_name="Grace", last_name="Hopper"),
        uow,
        cache,
    )

    assert (dto.first_name, dto.last_name) == ("Grace", "Hopper")
    assert uow._committed is True
    assert user_service.user_cache_key(user.id) not in cache._store
    refreshed = await user_service.get_user(user.id, uow, cache, EXPIRATION)
    assert isinstance(refreshed, UserDTO)
    assert refreshed.first_name == "Grace"


@pytest.mark.asyncio
async def test_update_unknown_user():
    with pytest.raises(NotFoundError):
        await user_service.update_user(
            UpdateUserCommand(user_id=uuid.uuid4(), first_name="A", last_name="B"),
            FakeUoW(),
            FakeCache(),
        )


@pytest.mark.asyncio
async def test_delete_user_removes_identity_row_and_cache_entries():
    uow = FakeUoW()
    cache = FakeCache()
    identity_provider = FakeIdentityProvider()
    user = uow.add_user(make_user())
    await user_service.get_user(user.id, uow, cache, EXPIRATION)
    cache._store[roles_cache_key(user.identity_id)] = object()
    cache._store[permissions_cache_key(user.identity_id)] = {"users:read-self"}

    await user_service.delete_user(user.id, identity_provider, uow, cache)

    assert identity_provider.deleted == [user.identity_id]
    assert uow.users._store == {}
    assert uow._committed is True
    assert cache._store == {}


@pytest.mark.asyncio
async def test_delete_unknown_user():
    identity_provider = FakeIdentityProvider()

    with pytest.raises(NotFoundError):
        await user_service.delete_user(uuid.uuid4(), identity_provider, FakeUoW(), FakeCache())
    assert identity_provider.deleted == []


@pytest.mark.asyncio
async def test_delete_user_keeps_row_when_identity_provider_fails():
    uow = FakeUoW()
    user = uow.add_user(make_user())
    identity_provider = FakeIdentityProvider(error=IdentityProviderError("down"))

    with pytest.raises(IdentityProviderError):
        await user_service.delete_user(user.id, identity_provider, uow, FakeCache())

    assert user.id in uow.users._store
    assert uow._committed is False


@pytest.mark.asyncio
async def test_login_and_renew():
    identity_provider = FakeIdentityProvider(passwords={"ada@example.com": "s3cret!"})

    token = await user_service.login_user(
        LogInUserCommand(email="ada@example.com", password="s3cret!"),
        identity_provider,
    )
    renewed = await user_service.renew_authorization(token.refresh_token, identity_provider)

    assert renewed.access_token != token.access_token
    with pytest.raises(AuthenticationError):
        await user_service.renew_authorization(token.refresh_token, identity_provider)


@pytest.mark.asyncio
async def test_login_with_wrong_password():
    identity_provider = FakeIdentityProvider(passwords={"ada@example.com": "s3cret!"})

    with pytest.raises(AuthenticationError):
        await user_service.login_user(
            LogInUserCommand(email="ada@example.com", password="nope"),
            identity_provider,
        )
