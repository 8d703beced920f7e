from __future__ import annotations

from enum import StrEnum


class RoleName(StrEnum):
    REGISTERED = "Registered"
    SUPER_ADMIN = "SuperAdmin"


class PermissionName(StrEnum):
    USERS_READ_SELF = "users:read-self"
    USERS_READ = "users:read"
    USERS_READ_SINGLE = "users:read-single"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
