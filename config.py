# config.py

"""Application configuration utilities.

Values are read from environment variables and an optional ``.env`` file.
The :func:`get_settings` helper validates them once and caches the result;
missing store credentials surface as :class:`ConfigurationError` instead of
failing later inside a request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portal.app.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings merged from ``.env`` and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    store_url: str
    store_anon_key: str
    redis_url: str = "redis://localhost:6379/0"
    # Pickup code refresh period for accepted orders
    code_rotation_secs: float = 30.0
    store_timeout_secs: float = 5.0
    store_slow_ms: int = 500
    sse_keepalive_secs: int = 15
    max_streams_per_ip: int = 20
    log_level: str = "INFO"
    error_dsn: str | None = None
    app_env: str = "dev"

    @field_validator("store_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value

    @field_validator("store_anon_key")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("code_rotation_secs")
    @classmethod
    def _positive_period(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value


# Cached singleton to avoid re-reading the environment
@lru_cache
def get_settings() -> Settings:
    """Return validated settings, raising ``ConfigurationError`` on failure."""

    try:
        return Settings()
    except ValidationError as exc:
        fields = sorted({str(e["loc"][0]).upper() for e in exc.errors() if e["loc"]})
        raise ConfigurationError(
            "Invalid or missing configuration: " + ", ".join(fields)
        ) from exc
