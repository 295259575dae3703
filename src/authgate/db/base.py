"""
authgate.db.base

SQLAlchemy declarative base.

Responsibilities:
- Provide a shared DeclarativeBase for the user/role models.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# --- Module Notes -----------------------------------------------------------
# `Base.metadata` is what `db.init_db.init_db` creates in dev/test and what
# `alembic/env.py` compares against for autogenerate.
