"""
authgate.db

Persistence package (SQLAlchemy async) backing the user store.

Responsibilities:
- Provide ORM models, engine/session setup, seeding, and repositories.
"""

# Package marker.
