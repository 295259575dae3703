"""
authgate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, bootstrap admin password).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me-to-32-bytes-or-more"


class Settings(BaseSettings):
    """
    Single settings object injected across layers.

    Token and hashing parameters are read once at startup and turned into
    immutable config objects (see `authgate.auth.tokens.TokenConfig`).
    """

    model_config = SettingsConfigDict(env_prefix="AUTHGATE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "authgate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 4000

    # Tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "authgate"
    jwt_audience: str = "authgate-api"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, repr=False)
    jwt_ttl_seconds: int = Field(default=3600, ge=1)

    # Credentials
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./authgate.db"
    store_timeout_seconds: float = Field(default=5.0, gt=0)

    # Roles / seeding
    default_role: Literal["admin", "user", "guest"] = "user"
    bootstrap_admin_email: str | None = None
    bootstrap_admin_password: str | None = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _reject_dev_secret_in_prod(self) -> Settings:
        if self.env == "prod" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("AUTHGATE_JWT_SECRET must be set in prod")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Nothing outside the app factory should read signing material from here at request
# time; routes get the prebuilt TokenService from app.state.
