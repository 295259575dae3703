"""
authgate.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) resolved from the user store.
- Define verified token contents (`Claims`).
- Define the symbolic role enumeration and its startup-resolved id mapping.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime


class Role(enum.StrEnum):
    # Values match `roles.name` rows; ids are resolved at startup (see RoleRegistry).
    admin = "admin"
    user = "user"
    guest = "guest"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, as stored (never as claimed by a token).
    """

    subject_id: int
    role_id: int
    role_name: str
    email: str
    name: str
    surname: str
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role_name == Role.admin


@dataclass(frozen=True, slots=True)
class Claims:
    subject_id: int
    role_id: int
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RoleRegistry:
    """Role name -> database id, loaded once when the app starts."""

    ids: Mapping[Role, int]

    def id_of(self, role: Role) -> int:
        return self.ids[role]

    def role_of(self, role_id: int) -> Role | None:
        for role, rid in self.ids.items():
            if rid == role_id:
                return role
        return None


# --- Module Notes -----------------------------------------------------------
# Keep these models minimal; they cross the API, service, and guard boundaries.
