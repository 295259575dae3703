"""
tests.test_auth_api

End-to-end auth flow over HTTP: register, login, profile, admin routes.
"""

from __future__ import annotations

import httpx
import pytest
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, bearer, login, register
from fastapi import FastAPI

from authgate.api.deps import auth_service_dep
from authgate.auth.errors import HashingError, StoreUnavailable


@pytest.mark.asyncio
async def test_register_then_login_then_profile(client: httpx.AsyncClient) -> None:
    r = await register(client)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User Registered Successfully"
    assert body["data"]["email"] == "ada@example.com"
    assert body["data"]["role"]["name"] == "user"
    # Registration never hands out a token.
    assert "token" not in body["data"]

    r = await login(client, "ada@example.com", "correct-horse")
    assert r.status_code == 200
    data = r.json()["data"]
    token = data["token"]

    r = await client.post("/v1/auth/profile", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["data"]["id"] == data["id"]

    r = await client.get("/v1/auth/me", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["data"]["subject_id"] == data["id"]


@pytest.mark.asyncio
async def test_bad_credentials_are_indistinguishable(client: httpx.AsyncClient) -> None:
    await register(client)

    unknown = await login(client, "ghost@example.com", "correct-horse")
    wrong = await login(client, "ada@example.com", "wrong-horse")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.content == wrong.content
    assert unknown.json() == {"message": "Unauthorized"}


@pytest.mark.asyncio
async def test_duplicate_registration(client: httpx.AsyncClient) -> None:
    assert (await register(client)).status_code == 201

    r = await register(client, password="another-password", name="Someone")
    assert r.status_code == 400
    assert r.json() == {"message": "User Already Exists"}

    # The stored account is untouched: old password still works, name unchanged.
    r = await login(client, "ada@example.com", "correct-horse")
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Ada"


@pytest.mark.asyncio
async def test_body_validation_short_circuits(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/auth/login", json={"email": "not-an-email", "password": "x"})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation Error"
    assert {e["property"] for e in body["errors"]} == {"email", "password"}


@pytest.mark.asyncio
async def test_profile_requires_token(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/auth/profile")
    assert r.status_code == 401
    assert r.json() == {"message": "Unauthorized"}

    r = await client.get("/v1/auth/profile", headers={"Authorization": "Bearer undefined"})
    assert r.status_code == 401

    r = await client.get("/v1/auth/profile", headers=bearer("forged.token.value"))
    assert r.status_code == 401
    assert r.json() == {"message": "Unauthorized"}


@pytest.mark.asyncio
async def test_admin_routes_require_admin_role(client: httpx.AsyncClient) -> None:
    await register(client)
    user_token = (await login(client, "ada@example.com", "correct-horse")).json()["data"]["token"]
    admin_token = (await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)).json()["data"]["token"]

    r = await client.get("/v1/users", headers=bearer(user_token))
    assert r.status_code == 401
    assert r.json() == {"message": "Unauthorized"}

    r = await client.get("/v1/users")
    assert r.status_code == 401

    r = await client.get("/v1/users", headers=bearer(admin_token))
    assert r.status_code == 200
    emails = {u["email"] for u in r.json()["data"]}
    assert emails == {ADMIN_EMAIL, "ada@example.com"}

    r = await client.get("/v1/roles", headers=bearer(admin_token))
    assert r.status_code == 200
    assert {row["name"] for row in r.json()["data"]} == {"admin", "user", "guest"}


@pytest.mark.asyncio
async def test_deleted_user_token_stops_resolving(client: httpx.AsyncClient) -> None:
    user_id = (await register(client)).json()["data"]["id"]
    user_token = (await login(client, "ada@example.com", "correct-horse")).json()["data"]["token"]
    admin_token = (await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)).json()["data"]["token"]

    r = await client.delete(f"/v1/users/{user_id}", headers=bearer(admin_token))
    assert r.status_code == 200

    r = await client.get("/v1/auth/profile", headers=bearer(user_token))
    assert r.status_code == 401

    r = await login(client, "ada@example.com", "correct-horse")
    assert r.status_code == 401


class FailingAuthService:
    async def login(self, email: str, plaintext: str) -> None:
        raise StoreUnavailable("user store timed out")

    async def register(self, email: str, plaintext: str, profile: object) -> None:
        raise HashingError("bcrypt hashing failed: salt rejected")


@pytest.mark.asyncio
async def test_internal_failures_return_generic_500(
    app: FastAPI, client: httpx.AsyncClient
) -> None:
    app.dependency_overrides[auth_service_dep] = FailingAuthService

    r = await login(client, "ada@example.com", "correct-horse")
    assert r.status_code == 500
    assert r.json() == {"message": "Internal Server Error"}
    assert "timed out" not in r.text

    r = await register(client)
    assert r.status_code == 500
    assert r.json() == {"message": "Internal Server Error"}
    assert "bcrypt" not in r.text
