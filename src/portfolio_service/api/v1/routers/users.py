from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from portfolio_service.api.deps import (
    CacheDep,
    CachedQueryExpirationDep,
    IdentityProviderDep,
    UoWDep,
    require_permission,
)
from portfolio_service.api.v1.schemas.user import (
    AuthorizationTokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterUserRequest,
    RegisterUserResponse,
    UpdateUserRequest,
    UserResponse,
)
from portfolio_service.application.dto.principal import Principal
from portfolio_service.application.dto.user import (
    LogInUserCommand,
    RegisterUserCommand,
    UpdateUserCommand,
)
from portfolio_service.domain.value_objects.enums import PermissionName
from portfolio_service.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "/register",
    response_model=RegisterUserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    body: RegisterUserRequest,
    uow: UoWDep,
    identity_provider: IdentityProviderDep,
) -> RegisterUserResponse:
    command = RegisterUserCommand(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        password=body.password,
        role=body.role,
    )
    user_id = await user_service.register_user(command, identity_provider, uow)
    return RegisterUserResponse(id=user_id)


@router.post("/login", response_model=AuthorizationTokenResponse)
async def login(
    body: LoginRequest,
    identity_provider: IdentityProviderDep,
) -> AuthorizationTokenResponse:
    token = await user_service.login_user(
        LogInUserCommand(email=body.email, password=body.password),
        identity_provider,
    )
    return AuthorizationTokenResponse(
        access_token=token.access_token,
        refresh_token=token.refresh_token,
    )


@router.post("/refresh", response_model=AuthorizationTokenResponse)
async def refresh(
    body: RefreshTokenRequest,
    identity_provider: IdentityProviderDep,
) -> AuthorizationTokenResponse:
    token = await user_service.renew_authorization(body.refresh_token, identity_provider)
    return AuthorizationTokenResponse(
        access_token=token.access_token,
        refresh_token=token.refresh_token,
    )


@router.get("/me", response_model=UserResponse)
async def get_logged_in_user(
    principal: Annotated[Principal, Depends(require_permission(PermissionName.USERS_READ_SELF))],
    uow: UoWDep,
) -> UserResponse:
    user = await user_service.get_logged_in_user(principal, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    _: Annotated[Principal, Depends(require_permission(PermissionName.USERS_READ))],
    uow: UoWDep,
    cache: CacheDep,
    expiration: CachedQueryExpirationDep,
) -> UserResponse:
    user = await user_service.get_user(user_id, uow, cache, expiration)
    return UserResponse.model_validate(user, from_attributes=True)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest,
    _: Annotated[Principal, Depends(require_permission(PermissionName.USERS_UPDATE))],
    uow: UoWDep,
    cache: CacheDep,
) -> UserResponse:
    command = UpdateUserCommand(
        user_id=user_id,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    user = await user_service.update_user(command, uow, cache)
    return UserResponse.model_validate(user, from_attributes=True)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    _: Annotated[Principal, Depends(require_permission(PermissionName.USERS_DELETE))],
    uow: UoWDep,
    cache: CacheDep,
    identity_provider: IdentityProviderDep,
) -> Response:
    await user_service.delete_user(user_id, identity_provider, uow, cache)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
