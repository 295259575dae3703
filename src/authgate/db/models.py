"""
authgate.db.models

Persistence schema for identities.

Responsibilities:
- Define ORM models for the user store:
  - RoleRow: named role (admin/user/guest) referenced by id from tokens
  - User: account record with a bcrypt password hash and a single role
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authgate.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity; production systems may use tz-aware types.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class RoleRow(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    # Roles are only deleted once no user references them; never load the collection for it.
    users: Mapped[list[User]] = relationship(back_populates="role", passive_deletes=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    surname: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    # Never the plaintext: always a bcrypt string from `auth.passwords`.
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)

    # Always loaded with the user; the store hands out records with an embedded role.
    role: Mapped[RoleRow] = relationship(back_populates="users", lazy="joined")


# --- Module Notes -----------------------------------------------------------
# Users are soft-deleted (deleted_at); lookups in `repositories.users` skip them so a
# token for a deleted account stops resolving.
