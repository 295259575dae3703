"""
authgate.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for users and roles.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; credential and token logic belongs in services/auth.
