"""
tests.conftest

Shared fixtures.

Responsibilities:
- Build test Settings backed by a throwaway SQLite file and a cheap bcrypt cost.
- Run the app lifespan and expose an httpx client over ASGITransport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from authgate.api.app import create_app
from authgate.settings import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
ADMIN_EMAIL = "admin@admin.com"
ADMIN_PASSWORD = "12345678"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'authgate.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        bootstrap_admin_email=ADMIN_EMAIL,
        bootstrap_admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings=settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not drive the lifespan; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


async def register(
    client: httpx.AsyncClient,
    email: str = "ada@example.com",
    password: str = "correct-horse",
    name: str = "Ada",
    surname: str = "Lovelace",
) -> httpx.Response:
    return await client.post(
        "/v1/auth/register",
        json={"name": name, "surname": surname, "email": email, "password": password},
    )


async def login(client: httpx.AsyncClient, email: str, password: str) -> httpx.Response:
    return await client.post("/v1/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
