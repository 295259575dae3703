"""
authgate.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide a liveness check (`/healthz`).
- Provide a readiness check (`/readyz`) with user-store connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request, session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Ready once the store answers and the role registry has been loaded.
    await session.execute(text("SELECT 1"))
    if getattr(request.app.state, "roles", None) is None:
        return {"status": "starting"}
    return {"status": "ready"}
