"""
tests.test_passwords

Credential hasher behaviour.
"""

from __future__ import annotations

import bcrypt
import pytest

from authgate.auth.errors import HashingError
from authgate.auth.passwords import PasswordHasher, hash_password, verify_password

ROUNDS = 4


def test_hash_is_salted_bcrypt() -> None:
    h1 = hash_password("same_password", rounds=ROUNDS)
    h2 = hash_password("same_password", rounds=ROUNDS)

    assert h1 != h2
    assert h1.startswith("$2b$04$")
    assert verify_password("same_password", h1)
    assert verify_password("same_password", h2)


def test_wrong_password_is_false() -> None:
    h = hash_password("test_password", rounds=ROUNDS)
    assert verify_password("wrong_password", h) is False


@pytest.mark.parametrize("stored", ["", "invalid_hash_string", "$2b$04$short"])
def test_malformed_hash_is_false(stored: str) -> None:
    assert verify_password("test_password", stored) is False


def test_empty_plaintext_is_false() -> None:
    h = hash_password("", rounds=ROUNDS)
    assert verify_password("", h) is False


def test_unicode_and_long_secrets() -> None:
    unicode_pw = "pässwörd-密码-123"
    assert verify_password(unicode_pw, hash_password(unicode_pw, rounds=ROUNDS))

    long_pw = "x" * 100
    assert verify_password(long_pw, hash_password(long_pw, rounds=ROUNDS))


def test_undecodable_hash_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    h = hash_password("test_password", rounds=ROUNDS)

    def _broken(*_: object) -> bool:
        raise ValueError("Invalid salt")

    monkeypatch.setattr(bcrypt, "checkpw", _broken)
    with pytest.raises(HashingError):
        verify_password("test_password", h)


def test_hasher_binds_rounds() -> None:
    hasher = PasswordHasher(rounds=5)
    h = hasher.hash("p@ssw0rd!#$%")
    assert h.startswith("$2b$05$")
    assert hasher.verify("p@ssw0rd!#$%", h)


def test_decoy_verify_never_hashes(monkeypatch: pytest.MonkeyPatch) -> None:
    hasher = PasswordHasher(rounds=4)
    calls: list[bytes] = []
    real_hashpw = bcrypt.hashpw

    def counting_hashpw(password: bytes, salt: bytes) -> bytes:
        calls.append(salt)
        return real_hashpw(password, salt)

    monkeypatch.setattr(bcrypt, "hashpw", counting_hashpw)

    assert hasher.verify_decoy("anything") is False
    assert hasher.verify_decoy("anything-else") is False
    assert calls == []
