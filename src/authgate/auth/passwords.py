"""
authgate.auth.passwords

Password hashing and verification.

Responsibilities:
- Hash plaintext passwords with bcrypt (self-describing: version + cost + salt + digest).
- Verify plaintext against a stored hash in constant time.
"""

from __future__ import annotations

import re

import bcrypt

from authgate.auth.errors import HashingError

# bcrypt only consumes the first 72 bytes of the secret.
_BCRYPT_MAX_BYTES = 72
_BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}$")

DEFAULT_ROUNDS = 12
_DECOY_PASSWORD = "authgate-decoy-password"


def _secret_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plaintext: str, *, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash with a fresh random salt; two calls on the same input never match."""
    try:
        return bcrypt.hashpw(_secret_bytes(plaintext), bcrypt.gensalt(rounds=rounds)).decode(
            "ascii"
        )
    except (ValueError, OSError) as e:
        raise HashingError(f"bcrypt hashing failed: {e}") from e


def verify_password(plaintext: str, password_hash: str) -> bool:
    """
    Constant-time comparison against a bcrypt hash.

    Wrong passwords, empty input, and strings that are not bcrypt hashes all return False.
    A bcrypt-shaped hash that bcrypt itself cannot decode raises `HashingError`.
    """
    if not plaintext or not password_hash:
        return False
    if not _BCRYPT_HASH_RE.match(password_hash):
        return False
    try:
        return bcrypt.checkpw(_secret_bytes(plaintext), password_hash.encode("ascii"))
    except ValueError as e:
        raise HashingError(f"corrupt bcrypt hash: {e}") from e


class PasswordHasher:
    """
    Binds the configured cost factor so callers never pass it around.

    A decoy hash at the same cost is computed once here, at construction, so that
    `verify_decoy` costs exactly one bcrypt check and never a hash.
    """

    def __init__(self, *, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds
        self._decoy_hash = hash_password(_DECOY_PASSWORD, rounds=rounds)

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plaintext: str) -> str:
        return hash_password(plaintext, rounds=self._rounds)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        return verify_password(plaintext, password_hash)

    def verify_decoy(self, plaintext: str) -> bool:
        """Run one full verify against the decoy hash; used when no stored hash exists."""
        return verify_password(plaintext, self._decoy_hash)


# --- Module Notes -----------------------------------------------------------
# `AuthService.login` calls `verify_decoy` for unknown emails so the unknown-email and
# wrong-password paths each cost a single bcrypt check.
