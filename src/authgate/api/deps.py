"""
authgate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and DB sessions.
- Assemble request-scoped services (AuthService, AdminService) from app.state singletons.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.auth.models import Role
from authgate.db.repositories.users import UserRepo
from authgate.services.admin_service import AdminService
from authgate.services.auth_service import AuthService
from authgate.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app is built from one Settings instance; routes see that same instance.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in the lifespan of `authgate.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Routers commit explicitly; anything else is rolled back.
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def auth_service_dep(
    request: Request,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AuthService:
    state = request.app.state
    return AuthService(
        users=UserRepo(session),
        tokens=state.token_service,
        hasher=state.hasher,
        roles=state.roles,
        default_role=Role(settings.default_role),
        store_timeout=settings.store_timeout_seconds,
    )


def admin_service_dep(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> AdminService:
    return AdminService(session=session, hasher=request.app.state.hasher)
