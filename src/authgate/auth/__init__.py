"""
authgate.auth

Authentication/authorization core.

Responsibilities:
- Password hashing (`passwords`) and JWT issue/verify (`tokens`).
- Guard chain as FastAPI dependencies (`guards`).
- Error taxonomy (`errors`) and identity models (`models`).
"""

# Package marker.
