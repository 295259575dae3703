"""
authgate.api.routers.auth

Account endpoints: register, login, profile, and a claims echo.

Responsibilities:
- Validate request bodies before any auth logic runs.
- Delegate to AuthService; render the `{"message", "data"}` envelope.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from authgate.api.deps import auth_service_dep, db_session
from authgate.auth.guards import require_auth, require_bearer_token
from authgate.auth.models import Claims, Principal
from authgate.services.auth_service import AuthService, ProfileFields

router = APIRouter(prefix="/v1/auth", tags=["auth"])

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=100)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    surname: str = Field(min_length=2, max_length=200)
    email: str = Field(min_length=3, max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=100)


class RoleOut(BaseModel):
    id: int
    name: str


class PrincipalOut(BaseModel):
    id: int
    name: str
    surname: str
    email: str
    role: RoleOut
    createdAt: datetime

    @classmethod
    def of(cls, p: Principal) -> PrincipalOut:
        return cls(
            id=p.subject_id,
            name=p.name,
            surname=p.surname,
            email=p.email,
            role=RoleOut(id=p.role_id, name=p.role_name),
            createdAt=p.created_at,
        )


class LoginData(PrincipalOut):
    token: str


class ClaimsOut(BaseModel):
    subject_id: int
    role_id: int
    issued_at: datetime
    expires_at: datetime


@router.post("/register", status_code=HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(auth_service_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    # No token here: the caller logs in separately.
    principal = await auth.register(
        body.email, body.password, ProfileFields(name=body.name, surname=body.surname)
    )
    await session.commit()
    return {
        "message": "User Registered Successfully",
        "data": PrincipalOut.of(principal).model_dump(mode="json"),
    }


@router.post("/login")
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(auth_service_dep),
) -> dict[str, Any]:
    principal, token = await auth.login(body.email, body.password)
    data = LoginData(**PrincipalOut.of(principal).model_dump(), token=token)
    return {"message": "User Logged In", "data": data.model_dump(mode="json")}


@router.api_route("/profile", methods=["GET", "POST"])
async def profile(
    token: str = Depends(require_bearer_token),
    auth: AuthService = Depends(auth_service_dep),
) -> dict[str, Any]:
    # Presence guard only; resolve() verifies the token and re-reads the account.
    principal = await auth.resolve(token)
    return {"message": "User Profile", "data": PrincipalOut.of(principal).model_dump(mode="json")}


@router.get("/me")
async def me(claims: Claims = Depends(require_auth())) -> dict[str, Any]:
    out = ClaimsOut(
        subject_id=claims.subject_id,
        role_id=claims.role_id,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
    return {"message": "Token Claims", "data": out.model_dump(mode="json")}


# --- Module Notes -----------------------------------------------------------
# Login failures (unknown email, wrong password) surface through `api.errors` as the
# same 401 body.
