"""
authgate.auth.guards

FastAPI dependency functions forming the request guard chain.

Responsibilities:
- Presence guard: pull a bearer token out of `Authorization: Bearer <token>`.
- Validity + role guard: verify the token and, optionally, require a role.
- Attach verified Claims to `request.state.claims` for downstream handlers.

Every rejection raises `Unauthorized`; `api.errors` renders it as a generic 401.
"""

from __future__ import annotations

from fastapi import Depends, Request

from authgate.auth.errors import TokenError, Unauthorized
from authgate.auth.models import Claims, Role, RoleRegistry
from authgate.auth.tokens import TokenService
from authgate.observability.logging import get_logger

log = get_logger(__name__)

BEARER_SCHEME = "Bearer"
# Placeholder values browser clients send when they have no token stored.
_EMPTY_TOKENS = frozenset({"", "null", "undefined"})


def token_service_dep(request: Request) -> TokenService:
    # Built once in the app lifespan (see `api.app.create_app`).
    return request.app.state.token_service  # type: ignore[attr-defined]


def role_registry_dep(request: Request) -> RoleRegistry:
    return request.app.state.roles  # type: ignore[attr-defined]


def extract_bearer_token(header: str | None) -> str | None:
    """Strict parse: case-sensitive scheme, exactly one space, non-placeholder token."""
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME:
        return None
    token = parts[1]
    if token in _EMPTY_TOKENS:
        return None
    return token


def require_bearer_token(request: Request) -> str:
    token = extract_bearer_token(request.headers.get("authorization"))
    if token is None:
        log.info("guard_rejected", reason="no_token")
        raise Unauthorized("missing bearer token")
    return token


def require_auth(role: Role | None = None):
    """
    Guard factory: `Depends(require_auth())` for any authenticated caller,
    `Depends(require_auth(Role.admin))` for admins only.
    """

    def _dep(
        request: Request,
        token: str = Depends(require_bearer_token),
        tokens: TokenService = Depends(token_service_dep),
        roles: RoleRegistry = Depends(role_registry_dep),
    ) -> Claims:
        try:
            claims = tokens.verify(token)
        except TokenError as e:
            log.info("guard_rejected", reason=e.kind.value)
            raise Unauthorized("invalid token") from e

        if role is not None and claims.role_id != roles.id_of(role):
            log.info("guard_rejected", reason="role", user_id=claims.subject_id)
            raise Unauthorized("role not permitted")

        request.state.claims = claims
        return claims

    return _dep


require_admin = require_auth(Role.admin)


# --- Module Notes -----------------------------------------------------------
# Role mismatches are 401, not 403: the outward response never says which check failed.
