from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_service.api.middleware.correlation_id import CorrelationIdMiddleware
from portfolio_service.api.v1.routers import health, users
from portfolio_service.application.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    IdentityProviderError,
    NotFoundError,
    ValidationError,
)
from portfolio_service.config import settings
from portfolio_service.logging_config import configure_logging
from portfolio_service.workers.outbox_worker import OutboxWorker, build_outbox_processor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    app.state.keycloak_client = httpx.AsyncClient(base_url=settings.KEYCLOAK_ADMIN_URL)

    worker: OutboxWorker | None = None
    if settings.OUTBOX_RUN_IN_APP:
        worker = OutboxWorker(build_outbox_processor(), settings.OUTBOX_INTERVAL_SECONDS)
        await worker.start()

    yield

    if worker is not None:
        await worker.stop()
    await app.state.keycloak_client.aclose()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Portfolio Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    # ConcurrencyError and UniqueConstraintViolationError are ConflictErrors
    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(AuthenticationError)
    async def _authentication(_req: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(IdentityProviderError)
    async def _identity_provider(_req: Request, exc: IdentityProviderError) -> JSONResponse:
        logger.warning("Identity provider failure: %s", exc.detail)
        return JSONResponse(status_code=502, content={"detail": exc.detail})
