"""
authgate.db.repositories.roles

Repository for `RoleRow` entities.

Responsibilities:
- Ensure the built-in roles exist (idempotent seeding).
- Build the startup `RoleRegistry` used by the role guard.
- Plain CRUD for admin-managed roles.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.models import Role, RoleRegistry
from authgate.db.models import RoleRow, User

_DESCRIPTIONS: dict[Role, str] = {
    Role.admin: "Admin Role",
    Role.user: "User Role",
    Role.guest: "Guest Role",
}


class RoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, role_id: int) -> RoleRow | None:
        return await self._session.get(RoleRow, role_id)

    async def get_by_name(self, name: str) -> RoleRow | None:
        stmt = select(RoleRow).where(RoleRow.name == name)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self) -> list[RoleRow]:
        stmt = select(RoleRow).order_by(RoleRow.id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(self, *, name: str, description: str = "") -> RoleRow:
        row = RoleRow(name=name, description=description)
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete(self, row: RoleRow) -> None:
        await self._session.delete(row)
        await self._session.flush()

    async def count_users(self, role_id: int) -> int:
        # Soft-deleted users still hold the foreign key.
        stmt = select(func.count()).select_from(User).where(User.role_id == role_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def ensure_builtin(self) -> list[RoleRow]:
        rows: list[RoleRow] = []
        for role in Role:
            row = await self.get_by_name(role.value)
            if row is None:
                row = RoleRow(name=role.value, description=_DESCRIPTIONS[role])
                self._session.add(row)
                await self._session.flush()
            rows.append(row)
        return rows

    async def load_registry(self) -> RoleRegistry:
        ids: dict[Role, int] = {}
        for role in Role:
            row = await self.get_by_name(role.value)
            if row is None:
                raise LookupError(f"role {role.value!r} is not seeded")
            ids[role] = row.id
        return RoleRegistry(ids=ids)


# --- Module Notes -----------------------------------------------------------
# Built-in role names are what `RoleRegistry` resolves at startup; `services.admin_service`
# refuses to rename or delete them.
