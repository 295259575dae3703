"""
authgate.services.auth_service

Authentication flow (login, register, resolve).

Responsibilities:
- Turn credentials into a `(Principal, token)` pair without revealing which check failed.
- Create accounts with hashed credentials; never issue a token on registration.
- Resolve a bearer token back to the stored Principal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from authgate.auth.errors import (
    AlreadyExists,
    InvalidCredentials,
    StoreUnavailable,
    Unauthorized,
)
from authgate.auth.models import Principal, Role, RoleRegistry
from authgate.auth.passwords import PasswordHasher
from authgate.auth.tokens import Err, TokenService
from authgate.db.models import User
from authgate.db.repositories.users import UserStore
from authgate.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ProfileFields:
    name: str
    surname: str


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def principal_from_user(user: User) -> Principal:
    return Principal(
        subject_id=user.id,
        role_id=user.role_id,
        role_name=user.role.name,
        email=user.email,
        name=user.name,
        surname=user.surname,
        created_at=user.created_at,
    )


class AuthService:
    def __init__(
        self,
        *,
        users: UserStore,
        tokens: TokenService,
        hasher: PasswordHasher,
        roles: RoleRegistry,
        default_role: Role = Role.user,
        store_timeout: float = 5.0,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._hasher = hasher
        self._roles = roles
        self._default_role = default_role
        self._store_timeout = store_timeout

    async def _store(self, call: Awaitable[T]) -> T:
        # Store calls are bounded; a hung lookup must not hang the request.
        try:
            return await asyncio.wait_for(call, timeout=self._store_timeout)
        except TimeoutError as e:
            raise StoreUnavailable("user store timed out") from e
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"user store failed: {e.__class__.__name__}") from e

    async def _decoy_verify(self, plaintext: str) -> None:
        # Unknown emails still pay for one bcrypt check so timing matches a wrong password.
        await run_in_threadpool(self._hasher.verify_decoy, plaintext)

    async def login(self, email: str, plaintext: str) -> tuple[Principal, str]:
        user = await self._store(self._users.find_by_email(normalize_email(email)))
        if user is None:
            await self._decoy_verify(plaintext)
            log.info("login_rejected")
            raise InvalidCredentials("invalid credentials")

        matches = await run_in_threadpool(self._hasher.verify, plaintext, user.password_hash)
        if not matches:
            log.info("login_rejected")
            raise InvalidCredentials("invalid credentials")

        token = self._tokens.issue(subject_id=user.id, role_id=user.role_id)
        log.info("login_succeeded", user_id=user.id, role_id=user.role_id)
        return principal_from_user(user), token

    async def register(self, email: str, plaintext: str, profile: ProfileFields) -> Principal:
        email = normalize_email(email)
        if await self._store(self._users.find_by_email(email)) is not None:
            raise AlreadyExists("email already registered")

        password_hash = await run_in_threadpool(self._hasher.hash, plaintext)
        user = User(
            role_id=self._roles.id_of(self._default_role),
            name=profile.name,
            surname=profile.surname,
            email=email,
            password_hash=password_hash,
        )
        try:
            saved = await self._store(self._users.save(user))
        except StoreUnavailable as e:
            # Lost a race with a concurrent registration for the same email.
            if isinstance(e.__cause__, IntegrityError):
                raise AlreadyExists("email already registered") from e
            raise

        log.info("user_registered", user_id=saved.id, role_id=saved.role_id)
        return principal_from_user(saved)

    async def resolve(self, token: str) -> Principal:
        result = self._tokens.decode(token)
        if isinstance(result, Err):
            raise Unauthorized(result.kind.value)
        try:
            user = await self._store(self._users.find_by_id(result.claims.subject_id))
        except StoreUnavailable as e:
            raise Unauthorized("user store unavailable") from e
        if user is None:
            # Token outlived its account (deleted after issuance).
            raise Unauthorized("subject no longer exists")
        return principal_from_user(user)


# --- Module Notes -----------------------------------------------------------
# Transactions are owned by the caller (routers commit after register); this service
# only flushes through the store.
