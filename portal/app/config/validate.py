"""Startup environment validation utilities."""

from __future__ import annotations

import logging
import os
from urllib.parse import urlparse

from ..errors import ConfigurationError

REQUIRED_ENVS = [
    "STORE_URL",
    "STORE_ANON_KEY",
]

logger = logging.getLogger("portal.config")


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def validate_on_boot() -> None:
    """Validate presence and basic format of required environment variables.

    Logs masked values for audit and raises :class:`ConfigurationError` naming
    every variable that is missing or malformed.
    """

    missing: list[str] = []
    for name in REQUIRED_ENVS:
        value = (os.getenv(name) or "").strip()
        if not value:
            missing.append(name)
            continue

        if name.endswith("_URL"):
            parsed = urlparse(value)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ConfigurationError(f"{name} must be a valid http(s) URL")

        logger.info("%s=%s", name, _mask(value))

    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(sorted(missing))
        )

    rotation = os.getenv("CODE_ROTATION_SECS")
    if rotation is not None:
        try:
            period = float(rotation)
        except ValueError:
            raise ConfigurationError("CODE_ROTATION_SECS must be a number") from None
        if period <= 0:
            raise ConfigurationError("CODE_ROTATION_SECS must be positive")
