"""Seed the predefined roles, permissions and role grants.

Usage: ``python -m portfolio_service.scripts.seed_roles [--create-schema]``.
Re-running is safe; existing rows are left untouched.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from sqlalchemy.dialects.postgresql import insert

from portfolio_service.config import settings
from portfolio_service.domain.entities.role import (
    ALL_PERMISSIONS,
    ALL_ROLES,
    ROLE_PERMISSIONS,
)
from portfolio_service.infrastructure.db.base import Base
from portfolio_service.infrastructure.db.models import (
    PermissionModel,
    RoleModel,
    RolePermissionModel,
)
from portfolio_service.infrastructure.db.session import AsyncSessionLocal, engine
from portfolio_service.logging_config import configure_logging

logger = logging.getLogger(__name__)

ROLE_SEED: list[dict[str, Any]] = [
    {"id": role.id, "name": str(role.name)} for role in ALL_ROLES
]
PERMISSION_SEED: list[dict[str, Any]] = [
    {"id": permission.id, "name": str(permission.name)} for permission in ALL_PERMISSIONS
]
ROLE_PERMISSION_SEED: list[dict[str, int]] = [
    {"role_id": role.id, "permission_id": permission.id}
    for role, permissions in ROLE_PERMISSIONS.items()
    for permission in permissions
]


async def create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema created")


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        for model, rows in (
            (RoleModel, ROLE_SEED),
            (PermissionModel, PERMISSION_SEED),
            (RolePermissionModel, ROLE_PERMISSION_SEED),
        ):
            await session.execute(insert(model).values(rows).on_conflict_do_nothing())
        await session.commit()

    logger.info(
        "Seeded %d roles, %d permissions, %d grants",
        len(ROLE_SEED),
        len(PERMISSION_SEED),
        len(ROLE_PERMISSION_SEED),
    )


async def main(create: bool) -> None:
    if create:
        await create_schema()
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--create-schema", action="store_true")
    args = parser.parse_args()
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(main(args.create_schema))
