"""Startup configuration checks."""

from .validate import REQUIRED_ENVS, validate_on_boot

__all__ = ["REQUIRED_ENVS", "validate_on_boot"]
