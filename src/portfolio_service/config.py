from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "portfolio"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_DEFAULT_TTL_SECONDS: int = 60
    CACHED_QUERY_TTL_SECONDS: int = 120

    JWT_SECRET: str = ""
    JWT_VERIFY_MODE: Literal["hs256", "jwks"] = "hs256"
    JWT_ALGORITHM: str = "HS256"
    JWKS_URL: str | None = None
    JWT_AUDIENCE: str | None = None
    JWT_ISSUER: str | None = None

    KEYCLOAK_ADMIN_URL: str = "http://localhost:18080/admin/realms/portfolio/"
    KEYCLOAK_TOKEN_URL: str = "http://localhost:18080/realms/portfolio/protocol/openid-connect/token"
    KEYCLOAK_ADMIN_CLIENT_ID: str = "portfolio-admin-client"
    KEYCLOAK_ADMIN_CLIENT_SECRET: str = ""
    KEYCLOAK_AUTH_CLIENT_ID: str = "portfolio-auth-client"
    KEYCLOAK_AUTH_CLIENT_SECRET: str = ""

    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    OUTBOX_INTERVAL_SECONDS: float = 10.0
    OUTBOX_BATCH_SIZE: int = 20
    OUTBOX_RUN_IN_APP: bool = True

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
