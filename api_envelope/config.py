"""Environment-based configuration loader using pydantic BaseSettings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Token verification and rate-limit quotas are loaded from environment
    variables (or a .env file) and validated at startup.
    """

    # Bearer token verification
    jwt_secret: str
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    jwt_audience: str = ""  # Audience is not checked when empty

    # Rate limiting (requests per window, per client identity)
    rate_limit_enabled: bool = True
    authenticated_rate_limit: int = Field(1000, ge=0)
    unauthenticated_rate_limit: int = Field(100, ge=0)
    rate_limit_window_seconds: int = Field(3600, ge=1)
    # Only enable behind a proxy that overwrites X-Forwarded-For
    trust_forwarded_for: bool = False

    # Pagination
    default_page_size: int = Field(20, ge=1)
    max_page_size: int = Field(100, ge=1)

    # Application
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Create and return a validated Settings instance."""
    return Settings()  # type: ignore[call-arg]
