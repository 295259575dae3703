"""
authgate.api.app

FastAPI app factory for the authgate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Build the process-wide singletons once: token service, password hasher, role registry.
- Initialize and dispose shared infrastructure (DB engine/session factory).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from authgate import __version__
from authgate.api.errors import register_error_handlers
from authgate.api.routers.auth import router as auth_router
from authgate.api.routers.health import router as health_router
from authgate.api.routers.users import roles_router, users_router
from authgate.auth.passwords import PasswordHasher
from authgate.auth.tokens import TokenConfig, TokenService
from authgate.db.init_db import bootstrap_admin, init_db, seed_roles
from authgate.db.session import create_engine, create_sessionmaker
from authgate.observability.logging import configure_logging, get_logger
from authgate.observability.middleware import RequestContextMiddleware
from authgate.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)

        app.state.roles = await seed_roles(app.state.sessionmaker)
        await bootstrap_admin(
            app.state.sessionmaker,
            settings=settings,
            registry=app.state.roles,
            hasher=app.state.hasher,
        )
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="authgate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Immutable for the life of the process; read concurrently by every request.
    app.state.settings = settings
    app.state.token_service = TokenService(TokenConfig.from_settings(settings))
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.roles = None

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(roles_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; credential and token logic stays in auth/ and services/.
