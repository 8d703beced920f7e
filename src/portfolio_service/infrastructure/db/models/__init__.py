"""Import all models so Alembic can discover them via Base.metadata."""
from portfolio_service.infrastructure.db.models.outbox import OutboxMessageModel
from portfolio_service.infrastructure.db.models.role import (
    PermissionModel,
    RoleModel,
    RolePermissionModel,
)
from portfolio_service.infrastructure.db.models.user import UserModel, UserRoleModel

__all__ = [
    "OutboxMessageModel",
    "PermissionModel",
    "RoleModel",
    "RolePermissionModel",
    "UserModel",
    "UserRoleModel",
]
