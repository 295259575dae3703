"""
tests.test_auth_service

AuthService against an in-memory user store (no database).
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import bcrypt
import pytest
from sqlalchemy.exc import OperationalError

from authgate.auth import passwords
from authgate.auth.errors import (
    AlreadyExists,
    InvalidCredentials,
    StoreUnavailable,
    Unauthorized,
)
from authgate.auth.models import Role, RoleRegistry
from authgate.auth.passwords import PasswordHasher
from authgate.auth.tokens import TokenConfig, TokenService
from authgate.db.models import RoleRow, User
from authgate.services.auth_service import AuthService, ProfileFields

REGISTRY = RoleRegistry(ids={Role.admin: 1, Role.user: 2, Role.guest: 3})
ROLE_ROWS = {
    rid: RoleRow(id=rid, name=role.value, description=role.value)
    for role, rid in REGISTRY.ids.items()
}
CFG = TokenConfig(
    alg="HS256",
    issuer="authgate",
    audience="authgate-api",
    secret="service-secret-0123456789abcdef0123456789abcdef",
)


class MemoryUserStore:
    def __init__(self) -> None:
        self.rows: dict[int, User] = {}

    async def find_by_email(self, email: str) -> User | None:
        return next((u for u in self.rows.values() if u.email == email), None)

    async def find_by_id(self, user_id: int) -> User | None:
        return self.rows.get(user_id)

    async def save(self, user: User) -> User:
        user.id = len(self.rows) + 1
        user.created_at = datetime(2026, 1, 1)
        user.role = ROLE_ROWS[user.role_id]
        self.rows[user.id] = user
        return user


class SlowUserStore(MemoryUserStore):
    async def find_by_email(self, email: str) -> User | None:
        await asyncio.sleep(1)
        return None

    async def find_by_id(self, user_id: int) -> User | None:
        await asyncio.sleep(1)
        return None


class BrokenUserStore(MemoryUserStore):
    async def find_by_email(self, email: str) -> User | None:
        raise OperationalError("SELECT users", {}, Exception("database is locked"))

    async def find_by_id(self, user_id: int) -> User | None:
        raise OperationalError("SELECT users", {}, Exception("database is locked"))


def make_service(store: MemoryUserStore, *, timeout: float = 5.0) -> AuthService:
    return AuthService(
        users=store,
        tokens=TokenService(CFG),
        hasher=PasswordHasher(rounds=4),
        roles=REGISTRY,
        store_timeout=timeout,
    )


PROFILE = ProfileFields(name="Grace", surname="Hopper")


@pytest.mark.asyncio
async def test_register_login_resolve_round_trip() -> None:
    store = MemoryUserStore()
    svc = make_service(store)

    registered = await svc.register(" Grace@Example.com ", "cobol-1959", PROFILE)
    assert registered.email == "grace@example.com"
    assert registered.role_id == REGISTRY.id_of(Role.user)
    assert store.rows[registered.subject_id].password_hash != "cobol-1959"

    principal, token = await svc.login("grace@example.com", "cobol-1959")
    assert principal.subject_id == registered.subject_id

    resolved = await svc.resolve(token)
    assert resolved.subject_id == registered.subject_id
    assert resolved.role_name == "user"


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_raise_the_same_error() -> None:
    svc = make_service(MemoryUserStore())
    await svc.register("grace@example.com", "cobol-1959", PROFILE)

    with pytest.raises(InvalidCredentials) as unknown:
        await svc.login("nobody@example.com", "cobol-1959")
    with pytest.raises(InvalidCredentials) as wrong:
        await svc.login("grace@example.com", "fortran-1957")
    assert type(unknown.value) is type(wrong.value)
    assert str(unknown.value) == str(wrong.value)


@pytest.mark.asyncio
async def test_duplicate_register_keeps_original_record() -> None:
    store = MemoryUserStore()
    svc = make_service(store)
    first = await svc.register("grace@example.com", "cobol-1959", PROFILE)
    original_hash = store.rows[first.subject_id].password_hash

    with pytest.raises(AlreadyExists):
        await svc.register(
            "grace@example.com", "other-password", ProfileFields(name="X", surname="Y")
        )

    assert len(store.rows) == 1
    assert store.rows[first.subject_id].password_hash == original_hash
    assert store.rows[first.subject_id].name == "Grace"


@pytest.mark.asyncio
async def test_resolve_fails_for_deleted_subject() -> None:
    store = MemoryUserStore()
    svc = make_service(store)
    await svc.register("grace@example.com", "cobol-1959", PROFILE)
    principal, token = await svc.login("grace@example.com", "cobol-1959")

    del store.rows[principal.subject_id]
    with pytest.raises(Unauthorized):
        await svc.resolve(token)


@pytest.mark.asyncio
async def test_resolve_rejects_garbage_token() -> None:
    with pytest.raises(Unauthorized):
        await make_service(MemoryUserStore()).resolve("garbage")


@pytest.mark.asyncio
async def test_store_timeout_surfaces_as_failure() -> None:
    svc = make_service(SlowUserStore(), timeout=0.01)

    with pytest.raises(StoreUnavailable):
        await svc.login("grace@example.com", "cobol-1959")
    with pytest.raises(StoreUnavailable):
        await svc.register("grace@example.com", "cobol-1959", PROFILE)

    token = TokenService(CFG).issue(subject_id=1, role_id=2)
    with pytest.raises(Unauthorized):
        await svc.resolve(token)


@pytest.mark.asyncio
async def test_database_error_surfaces_as_failure_on_login_and_unauthorized_on_resolve() -> None:
    svc = make_service(BrokenUserStore())

    with pytest.raises(StoreUnavailable) as login_err:
        await svc.login("grace@example.com", "cobol-1959")
    assert isinstance(login_err.value.__cause__, OperationalError)
    with pytest.raises(StoreUnavailable):
        await svc.register("grace@example.com", "cobol-1959", PROFILE)

    token = TokenService(CFG).issue(subject_id=1, role_id=2)
    with pytest.raises(Unauthorized):
        await svc.resolve(token)


@pytest.mark.asyncio
async def test_unknown_email_login_never_hashes(monkeypatch: pytest.MonkeyPatch) -> None:
    # Decoy hash already exists once the service is built.
    svc = make_service(MemoryUserStore())
    calls = {"hashpw": 0, "checkpw": 0}
    real_hashpw, real_checkpw = bcrypt.hashpw, bcrypt.checkpw

    def counting_hashpw(password: bytes, salt: bytes) -> bytes:
        calls["hashpw"] += 1
        return real_hashpw(password, salt)

    def counting_checkpw(password: bytes, hashed: bytes) -> bool:
        calls["checkpw"] += 1
        return real_checkpw(password, hashed)

    monkeypatch.setattr(passwords.bcrypt, "hashpw", counting_hashpw)
    monkeypatch.setattr(passwords.bcrypt, "checkpw", counting_checkpw)

    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            await svc.login("nobody@example.com", "cobol-1959")

    assert calls == {"hashpw": 0, "checkpw": 3}
