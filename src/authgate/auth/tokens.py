"""
authgate.auth.tokens

JWT issuing and verification.

Responsibilities:
- Issue signed, time-limited tokens carrying `(subject_id, role_id)`.
- Verify tokens with a pinned HMAC algorithm and strict payload-shape checks.
- Report expected failures as a tagged result (`Ok | Err`) instead of half-filled claims.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidAlgorithmError, InvalidSignatureError, InvalidTokenError
from jwt.utils import base64url_decode, base64url_encode

from authgate.auth.errors import TokenErrorKind, token_error_for
from authgate.auth.models import Claims
from authgate.settings import Settings

_HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class TokenConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str
    ttl: timedelta = timedelta(hours=1)

    def __post_init__(self) -> None:
        if self.alg not in _HMAC_ALGORITHMS:
            raise ValueError(f"unsupported token algorithm: {self.alg}")
        if not self.secret:
            raise ValueError("token secret must not be empty")
        if self.ttl <= timedelta(0):
            raise ValueError("token ttl must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            ttl=timedelta(seconds=settings.jwt_ttl_seconds),
        )


@dataclass(frozen=True, slots=True)
class Ok:
    claims: Claims


@dataclass(frozen=True, slots=True)
class Err:
    kind: TokenErrorKind
    detail: str = ""


ClaimsResult = Ok | Err


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def check_segments(token: str) -> Err | None:
    """
    Structural checks PyJWT leaves to the base64 decoder.

    Header and payload must decode to JSON; the signature segment must be the
    canonical base64url form of its bytes. A non-canonical segment (stray characters,
    or non-zero trailing bits in the last character) decodes to the same digest as the
    original, so it is rejected here as a signature failure instead of being accepted.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return Err(TokenErrorKind.malformed_payload, "token must have three segments")
    header, body, signature = parts
    try:
        json.loads(base64url_decode(header))
        json.loads(base64url_decode(body))
    except (ValueError, TypeError) as e:
        return Err(TokenErrorKind.malformed_payload, f"undecodable segment: {e}")
    try:
        canonical = base64url_encode(base64url_decode(signature)).decode("ascii")
    except (ValueError, TypeError) as e:
        return Err(TokenErrorKind.invalid_signature, f"undecodable signature: {e}")
    if canonical != signature:
        return Err(TokenErrorKind.invalid_signature, "signature is not canonical base64url")
    return None


def claims_from_payload(payload: dict[str, Any]) -> ClaimsResult:
    """Validate the decoded payload shape; nothing is defaulted."""
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        return Err(TokenErrorKind.malformed_payload, "subject missing or not an id")
    role_id = payload.get("role_id")
    if not _is_int(role_id):
        return Err(TokenErrorKind.malformed_payload, "role_id missing or not an integer")
    iat, exp = payload.get("iat"), payload.get("exp")
    if not _is_number(iat) or not _is_number(exp):
        return Err(TokenErrorKind.malformed_payload, "iat/exp missing or not numeric")
    try:
        issued_at = datetime.fromtimestamp(iat, tz=UTC)
        expires_at = datetime.fromtimestamp(exp, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return Err(TokenErrorKind.malformed_payload, "iat/exp out of range")
    return Ok(
        Claims(
            subject_id=int(sub),
            role_id=role_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )
    )


class TokenService:
    """
    Owns the signing secret and expiry policy for the process.

    The verifier never reads the algorithm from the token header; only `cfg.alg`
    is accepted, which rules out `none`/asymmetric algorithm-confusion tricks.
    """

    def __init__(self, cfg: TokenConfig, *, clock: Clock = utcnow) -> None:
        self._cfg = cfg
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._cfg.ttl

    def issue(self, *, subject_id: int, role_id: int) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "iss": self._cfg.issuer,
            "aud": self._cfg.audience,
            "sub": str(subject_id),
            "role_id": role_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self._cfg.ttl).timestamp()),
        }
        return jwt.encode(payload, self._cfg.secret, algorithm=self._cfg.alg)

    def decode(self, token: str) -> ClaimsResult:
        shape_error = check_segments(token)
        if shape_error is not None:
            return shape_error
        try:
            # Expiry is checked below against the injected clock, not PyJWT's wall clock.
            payload = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                issuer=self._cfg.issuer,
                audience=self._cfg.audience,
                options={
                    "require": ["exp", "iat", "iss", "aud", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except (InvalidSignatureError, InvalidAlgorithmError) as e:
            return Err(TokenErrorKind.invalid_signature, str(e))
        except InvalidTokenError as e:
            return Err(TokenErrorKind.malformed_payload, str(e))

        result = claims_from_payload(payload)
        if isinstance(result, Ok) and self._clock() > result.claims.expires_at:
            return Err(TokenErrorKind.expired, "token expired")
        return result

    def verify(self, token: str) -> Claims:
        result = self.decode(token)
        if isinstance(result, Err):
            raise token_error_for(result.kind, result.detail)
        return result.claims


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `services.auth_service.AuthService.login`; verification by
# `auth.guards` and `AuthService.resolve`.
