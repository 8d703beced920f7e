from __future__ import annotations

from dataclasses import dataclass

from portfolio_service.domain.value_objects.enums import PermissionName, RoleName


@dataclass(frozen=True, slots=True)
class Permission:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class Role:
    id: int
    name: str


USERS_READ_SELF = Permission(1, PermissionName.USERS_READ_SELF)
USERS_READ = Permission(2, PermissionName.USERS_READ)
USERS_READ_SINGLE = Permission(3, PermissionName.USERS_READ_SINGLE)
USERS_UPDATE = Permission(4, PermissionName.USERS_UPDATE)
USERS_DELETE = Permission(5, PermissionName.USERS_DELETE)

REGISTERED = Role(1, RoleName.REGISTERED)
SUPER_ADMIN = Role(2, RoleName.SUPER_ADMIN)

ALL_ROLES: tuple[Role, ...] = (REGISTERED, SUPER_ADMIN)
ALL_PERMISSIONS: tuple[Permission, ...] = (
    USERS_READ_SELF,
    USERS_READ,
    USERS_READ_SINGLE,
    USERS_UPDATE,
    USERS_DELETE,
)

# users:read-single is declared but granted to no role.
ROLE_PERMISSIONS: dict[Role, tuple[Permission, ...]] = {
    REGISTERED: (USERS_READ_SELF,),
    SUPER_ADMIN: (USERS_READ_SELF, USERS_READ, USERS_UPDATE, USERS_DELETE),
}


def role_from_name(name: str) -> Role:
    """Return the predefined role called ``name``.

    Raises ValueError for names outside the catalog.
    """
    for role in ALL_ROLES:
        if role.name == name:
            return role
    raise ValueError(f"The role {name!r} is invalid")
