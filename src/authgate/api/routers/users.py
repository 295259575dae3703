"""
authgate.api.routers.users

Admin-only user and role administration.

Responsibilities:
- List/read/create/edit/soft-delete users behind the admin guard.
- List/read/create/edit/delete roles behind the admin guard.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from authgate.api.deps import admin_service_dep, db_session
from authgate.api.routers.auth import EMAIL_PATTERN
from authgate.auth.errors import NotFound
from authgate.auth.guards import require_admin
from authgate.db.models import RoleRow, User
from authgate.db.repositories.roles import RoleRepo
from authgate.db.repositories.users import UserRepo
from authgate.services.admin_service import AdminService, UserChanges

users_router = APIRouter(
    prefix="/v1/users", tags=["users"], dependencies=[Depends(require_admin)]
)
roles_router = APIRouter(
    prefix="/v1/roles", tags=["roles"], dependencies=[Depends(require_admin)]
)

_ROLE_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_-]*$"


class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    surname: str = Field(min_length=2, max_length=200)
    email: str = Field(min_length=3, max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=100)
    role_id: int


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=200)
    surname: str | None = Field(default=None, min_length=2, max_length=200)
    email: str | None = Field(default=None, min_length=3, max_length=100, pattern=EMAIL_PATTERN)
    password: str | None = Field(default=None, min_length=8, max_length=100)
    role_id: int | None = None


class RoleCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100, pattern=_ROLE_NAME_PATTERN)
    description: str = Field(default="", max_length=255)


class RoleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100, pattern=_ROLE_NAME_PATTERN)
    description: str | None = Field(default=None, max_length=255)


def _user_out(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "name": u.name,
        "surname": u.surname,
        "email": u.email,
        "role": {"id": u.role.id, "name": u.role.name},
        "createdAt": u.created_at.isoformat(),
    }


def _role_out(r: RoleRow) -> dict[str, Any]:
    return {"id": r.id, "name": r.name, "description": r.description}


@users_router.get("")
async def list_users(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    users = await UserRepo(session).list_active()
    return {"message": "Users", "data": [_user_out(u) for u in users]}


@users_router.post("", status_code=HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    admin: AdminService = Depends(admin_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    user = await admin.create_user(
        email=body.email,
        password=body.password,
        name=body.name,
        surname=body.surname,
        role_id=body.role_id,
    )
    await session.commit()
    return {"message": "User Created", "data": _user_out(user)}


@users_router.get("/{user_id}")
async def get_user(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    user = await UserRepo(session).find_by_id(user_id)
    if user is None:
        raise NotFound(f"user {user_id}", resource="User")
    return {"message": "User", "data": _user_out(user)}


@users_router.patch("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    admin: AdminService = Depends(admin_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    user = await admin.update_user(user_id, UserChanges(**body.model_dump()))
    await session.commit()
    return {"message": "User Updated", "data": _user_out(user)}


@users_router.delete("/{user_id}")
async def delete_user(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    # Soft delete: outstanding tokens stop resolving via /v1/auth/profile.
    if not await UserRepo(session).soft_delete(user_id):
        raise NotFound(f"user {user_id}", resource="User")
    await session.commit()
    return {"message": "User Deleted", "data": {"id": user_id}}


@roles_router.get("")
async def list_roles(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await RoleRepo(session).list_all()
    return {"message": "Roles", "data": [_role_out(r) for r in rows]}


@roles_router.post("", status_code=HTTP_201_CREATED)
async def create_role(
    body: RoleCreate,
    admin: AdminService = Depends(admin_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    row = await admin.create_role(body.name, body.description)
    await session.commit()
    return {"message": "Role Created", "data": _role_out(row)}


@roles_router.get("/{role_id}")
async def get_role(role_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    row = await RoleRepo(session).get(role_id)
    if row is None:
        raise NotFound(f"role {role_id}", resource="Role")
    return {"message": "Role", "data": _role_out(row)}


@roles_router.patch("/{role_id}")
async def update_role(
    role_id: int,
    body: RoleUpdate,
    admin: AdminService = Depends(admin_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    row = await admin.update_role(role_id, name=body.name, description=body.description)
    await session.commit()
    return {"message": "Role Updated", "data": _role_out(row)}


@roles_router.delete("/{role_id}")
async def delete_role(
    role_id: int,
    admin: AdminService = Depends(admin_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    await admin.delete_role(role_id)
    await session.commit()
    return {"message": "Role Deleted", "data": {"id": role_id}}


# --- Module Notes -----------------------------------------------------------
# Every route here sits behind `require_admin`; a non-admin token gets the same 401 as
# no token at all.
