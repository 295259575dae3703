"""
authgate.db.repositories.users

Repository for `User` entities, and the store contract the auth core depends on.

Responsibilities:
- Look up live (not soft-deleted) users by email or id, role embedded.
- Persist new users and soft-delete existing ones.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.db.models import User


class UserStore(Protocol):
    # The only persistence surface the auth core sees.
    async def find_by_email(self, email: str) -> User | None: ...

    async def find_by_id(self, user_id: int) -> User | None: ...

    async def save(self, user: User) -> User: ...


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email, User.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def save(self, user: User) -> User:
        self._session.add(user)
        await self._session.flush()
        # Reload so the returned record carries its role like every other lookup.
        await self._session.refresh(user, attribute_names=["role"])
        return user

    async def list_active(self, *, limit: int = 200) -> list[User]:
        stmt = (
            select(User)
            .where(User.deleted_at.is_(None))
            .order_by(User.id.desc())
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def soft_delete(self, user_id: int) -> bool:
        user = await self.find_by_id(user_id)
        if user is None:
            return False
        user.deleted_at = datetime.now(tz=UTC).replace(tzinfo=None)
        await self._session.flush()
        return True


# --- Module Notes -----------------------------------------------------------
# Email uniqueness is enforced by the table; `AuthService.register` checks first so a
# conflict surfaces as AlreadyExists rather than an IntegrityError.
