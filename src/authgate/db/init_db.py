"""
authgate.db.init_db

DB initialization and seeding.

Responsibilities:
- Create tables for local development and tests.
- Ensure the built-in roles exist and build the RoleRegistry.
- Optionally bootstrap a first admin account from settings.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from authgate.auth.models import Role, RoleRegistry
from authgate.auth.passwords import PasswordHasher
from authgate.db.base import Base
from authgate.db.models import User
from authgate.db.repositories.roles import RoleRepo
from authgate.db.repositories.users import UserRepo
from authgate.db.session import session_scope
from authgate.observability.logging import get_logger
from authgate.settings import Settings

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    Production should rely on Alembic migrations.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_roles(session_factory: async_sessionmaker[AsyncSession]) -> RoleRegistry:
    async with session_scope(session_factory) as session:
        repo = RoleRepo(session)
        await repo.ensure_builtin()
        return await repo.load_registry()


async def bootstrap_admin(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    settings: Settings,
    registry: RoleRegistry,
    hasher: PasswordHasher,
) -> User | None:
    """
    Create the configured admin account if it does not exist yet.

    Controlled by AUTHGATE_BOOTSTRAP_ADMIN_EMAIL / AUTHGATE_BOOTSTRAP_ADMIN_PASSWORD;
    nothing happens unless both are set.
    """

    email = (settings.bootstrap_admin_email or "").strip().lower()
    password = settings.bootstrap_admin_password or ""
    if not email or not password:
        return None

    async with session_scope(session_factory) as session:
        users = UserRepo(session)
        if await users.find_by_email(email) is not None:
            return None
        admin = await users.save(
            User(
                role_id=registry.id_of(Role.admin),
                name="Administrator",
                surname="System",
                email=email,
                password_hash=hasher.hash(password),
            )
        )
    log.info("admin_bootstrapped", user_id=admin.id)
    return admin


# --- Module Notes -----------------------------------------------------------
# All three helpers run from the app lifespan (`api.app.create_app`); seeding is idempotent.
