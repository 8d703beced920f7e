from __future__ import annotations

from portfolio_service.domain.entities.role import Role
from portfolio_service.domain.entities.user import User
from portfolio_service.infrastructure.db.models.user import UserModel, UserRoleModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        first_name=model.first_name,
        last_name=model.last_name,
        email=model.email,
        identity_id=model.identity_id,
        roles=[Role(id=link.role.id, name=link.role.name) for link in model.roles],
        version=model.version,
    )


def entity_to_model(entity: User) -> UserModel:
    return UserModel(
        id=entity.id,
        first_name=entity.first_name,
        last_name=entity.last_name,
        email=entity.email,
        identity_id=entity.identity_id,
        roles=[UserRoleModel(role_id=role.id) for role in entity.roles],
    )
