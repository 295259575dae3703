"""
authgate.api

HTTP surface for the authgate service.

Responsibilities:
- FastAPI app factory, routers, and the error-handling boundary.
- API-layer dependency wiring and request/response models.
"""

# Package marker.
