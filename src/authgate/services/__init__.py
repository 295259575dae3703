"""
authgate.services

Service layer.

Responsibilities:
- Authentication flow orchestration (login/register/resolve).
- Admin management of roles and accounts.
"""

# Package marker.
