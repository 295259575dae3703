"""
authgate.auth.errors

Error taxonomy for the authentication/authorization core.

Responsibilities:
- Name every terminal outcome the core can produce.
- Keep the outward mapping (401 vs 400 vs 500) in one place: `authgate.api.errors`.
"""

from __future__ import annotations

import enum


class AuthGateError(Exception):
    pass


class InvalidCredentials(AuthGateError):
    """Unknown email or wrong password. The two cases are never distinguished."""


class Unauthorized(AuthGateError):
    pass


class TokenErrorKind(enum.StrEnum):
    invalid_signature = "INVALID_SIGNATURE"
    expired = "EXPIRED"
    malformed_payload = "MALFORMED_PAYLOAD"


class TokenError(AuthGateError):
    kind: TokenErrorKind


class InvalidSignature(TokenError):
    kind = TokenErrorKind.invalid_signature


class Expired(TokenError):
    kind = TokenErrorKind.expired


class MalformedPayload(TokenError):
    kind = TokenErrorKind.malformed_payload


_TOKEN_ERRORS: dict[TokenErrorKind, type[TokenError]] = {
    TokenErrorKind.invalid_signature: InvalidSignature,
    TokenErrorKind.expired: Expired,
    TokenErrorKind.malformed_payload: MalformedPayload,
}


def token_error_for(kind: TokenErrorKind, detail: str = "") -> TokenError:
    return _TOKEN_ERRORS[kind](detail or kind.value)


class AlreadyExists(AuthGateError):
    """Unique key taken; `resource` names the record type in the response ("User", "Role")."""

    def __init__(self, detail: str = "", *, resource: str = "User") -> None:
        super().__init__(detail or f"{resource} already exists")
        self.resource = resource


class NotFound(AuthGateError):
    def __init__(self, detail: str = "", *, resource: str) -> None:
        super().__init__(detail or f"{resource} not found")
        self.resource = resource


class Conflict(AuthGateError):
    """Request is well-formed but the record's current state forbids it."""

    def __init__(self, public_message: str, detail: str = "") -> None:
        super().__init__(detail or public_message)
        self.public_message = public_message


class HashingError(AuthGateError):
    pass


class StoreUnavailable(AuthGateError):
    pass


# --- Module Notes -----------------------------------------------------------
# Messages on these exceptions are for logs only; clients always get the generic body.
