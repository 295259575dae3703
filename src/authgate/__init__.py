"""
authgate

Stateless authentication and role-based authorization gate for HTTP APIs.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
