"""
authgate.services.admin_service

Admin-side management of roles and user accounts.

Responsibilities:
- Create/rename/delete roles while keeping the built-in roles intact.
- Create and edit user accounts on behalf of an admin, hashing any new password.
- Raise the auth error taxonomy (NotFound/AlreadyExists/Conflict); routers render it.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from authgate.auth.errors import AlreadyExists, Conflict, NotFound
from authgate.auth.models import Role
from authgate.auth.passwords import PasswordHasher
from authgate.db.models import RoleRow, User
from authgate.db.repositories.roles import RoleRepo
from authgate.db.repositories.users import UserRepo
from authgate.observability.logging import get_logger
from authgate.services.auth_service import normalize_email

log = get_logger(__name__)

_BUILTIN_ROLES = frozenset(r.value for r in Role)


@dataclass(frozen=True, slots=True)
class UserChanges:
    # None means "leave as is".
    name: str | None = None
    surname: str | None = None
    email: str | None = None
    password: str | None = None
    role_id: int | None = None


class AdminService:
    def __init__(self, *, session: AsyncSession, hasher: PasswordHasher) -> None:
        self._session = session
        self._roles = RoleRepo(session)
        self._users = UserRepo(session)
        self._hasher = hasher

    async def _flush_unique(self, resource: str) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise AlreadyExists(str(e.orig), resource=resource) from e

    async def _role(self, role_id: int) -> RoleRow:
        row = await self._roles.get(role_id)
        if row is None:
            raise NotFound(f"role {role_id}", resource="Role")
        return row

    async def _user(self, user_id: int) -> User:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFound(f"user {user_id}", resource="User")
        return user

    # --- roles ---------------------------------------------------------------

    async def create_role(self, name: str, description: str = "") -> RoleRow:
        name = name.strip().lower()
        if await self._roles.get_by_name(name) is not None:
            raise AlreadyExists(f"role {name!r}", resource="Role")
        try:
            row = await self._roles.create(name=name, description=description)
        except IntegrityError as e:
            raise AlreadyExists(f"role {name!r}", resource="Role") from e
        log.info("role_created", role_id=row.id, role=row.name)
        return row

    async def update_role(
        self, role_id: int, *, name: str | None = None, description: str | None = None
    ) -> RoleRow:
        row = await self._role(role_id)
        if name is not None:
            name = name.strip().lower()
            if name != row.name:
                if row.name in _BUILTIN_ROLES:
                    raise Conflict("Built-in Role", f"cannot rename {row.name!r}")
                if await self._roles.get_by_name(name) is not None:
                    raise AlreadyExists(f"role {name!r}", resource="Role")
                row.name = name
        if description is not None:
            row.description = description
        await self._flush_unique("Role")
        log.info("role_updated", role_id=row.id, role=row.name)
        return row

    async def delete_role(self, role_id: int) -> None:
        row = await self._role(role_id)
        if row.name in _BUILTIN_ROLES:
            raise Conflict("Built-in Role", f"cannot delete {row.name!r}")
        if await self._roles.count_users(row.id) > 0:
            raise Conflict("Role In Use", f"role {row.name!r} still assigned")
        await self._roles.delete(row)
        log.info("role_deleted", role_id=role_id)

    # --- users ---------------------------------------------------------------

    async def create_user(
        self, *, email: str, password: str, name: str, surname: str, role_id: int
    ) -> User:
        email = normalize_email(email)
        await self._role(role_id)
        if await self._users.find_by_email(email) is not None:
            raise AlreadyExists("email already registered", resource="User")

        password_hash = await run_in_threadpool(self._hasher.hash, password)
        user = User(
            role_id=role_id,
            name=name,
            surname=surname,
            email=email,
            password_hash=password_hash,
        )
        try:
            saved = await self._users.save(user)
        except IntegrityError as e:
            # Email still held by a soft-deleted account, or a concurrent insert.
            raise AlreadyExists("email already registered", resource="User") from e
        log.info("user_created", user_id=saved.id, role_id=saved.role_id)
        return saved

    async def update_user(self, user_id: int, changes: UserChanges) -> User:
        user = await self._user(user_id)
        if changes.email is not None:
            email = normalize_email(changes.email)
            if email != user.email:
                if await self._users.find_by_email(email) is not None:
                    raise AlreadyExists("email already registered", resource="User")
                user.email = email
        if changes.role_id is not None and changes.role_id != user.role_id:
            await self._role(changes.role_id)
            user.role_id = changes.role_id
        if changes.name is not None:
            user.name = changes.name
        if changes.surname is not None:
            user.surname = changes.surname
        if changes.password is not None:
            user.password_hash = await run_in_threadpool(self._hasher.hash, changes.password)

        try:
            saved = await self._users.save(user)
        except IntegrityError as e:
            raise AlreadyExists("email already registered", resource="User") from e
        log.info("user_updated", user_id=saved.id, role_id=saved.role_id)
        return saved


# --- Module Notes -----------------------------------------------------------
# Tokens carry role_id, so a role change takes effect at the user's next login; already
# issued tokens keep the old role until they expire.
