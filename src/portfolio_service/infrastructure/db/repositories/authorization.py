from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_service.application.dto.authorization import UserRolesResponse
from portfolio_service.application.exceptions import NotFoundError
from portfolio_service.domain.entities.role import Role
from portfolio_service.infrastructure.db.models.role import (
    PermissionModel,
    RoleModel,
    RolePermissionModel,
)
from portfolio_service.infrastructure.db.models.user import UserModel, UserRoleModel


def user_roles_statement(identity_id: str) -> Select:
    """One row per held role, ordered by role id; a single all-NULL role row if none."""
    return (
        select(UserModel.id, RoleModel.id, RoleModel.name)
        .select_from(UserModel)
        .outerjoin(UserRoleModel, UserRoleModel.user_id == UserModel.id)
        .outerjoin(RoleModel, RoleModel.id == UserRoleModel.role_id)
        .where(UserModel.identity_id == identity_id)
        .order_by(RoleModel.id)
    )


def user_permissions_statement(identity_id: str) -> Select:
    """(role_id, permission name) pairs; either may be NULL through the outer joins."""
    return (
        select(UserRoleModel.role_id, PermissionModel.name)
        .select_from(UserModel)
        .outerjoin(UserRoleModel, UserRoleModel.user_id == UserModel.id)
        .outerjoin(
            RolePermissionModel,
            RolePermissionModel.role_id == UserRoleModel.role_id,
        )
        .outerjoin(
            PermissionModel,
            PermissionModel.id == RolePermissionModel.permission_id,
        )
        .where(UserModel.identity_id == identity_id)
    )


def fold_user_roles(
    identity_id: str,
    rows: Sequence[tuple[UUID, int | None, str | None]],
) -> UserRolesResponse:
    if not rows:
        raise NotFoundError(f"No user for identity {identity_id}")
    return UserRolesResponse(
        user_id=rows[0][0],
        roles=[
            Role(id=role_id, name=name)
            for _, role_id, name in rows
            if role_id is not None
        ],
    )


def fold_user_permissions(
    identity_id: str,
    rows: Sequence[tuple[int | None, str | None]],
) -> set[str]:
    if not rows:
        raise NotFoundError(f"No user for identity {identity_id}")
    if all(role_id is None for role_id, _ in rows):
        raise NotFoundError(f"User with identity {identity_id} holds no role")
    return {name for _, name in rows if name is not None}


class AuthorizationReaderRepo:
    """Database fallback for the authorization cache."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _rows(self, stmt: Select) -> list[Any]:
        return [tuple(row) for row in (await self._session.execute(stmt)).all()]

    async def get_user_roles(self, identity_id: str) -> UserRolesResponse:
        rows = await self._rows(user_roles_statement(identity_id))
        return fold_user_roles(identity_id, rows)

    async def get_user_permissions(self, identity_id: str) -> set[str]:
        rows = await self._rows(user_permissions_statement(identity_id))
        return fold_user_permissions(identity_id, rows)
