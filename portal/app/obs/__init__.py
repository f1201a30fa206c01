"""Observability helpers."""

from .errors import capture_exception, init_sentry  # re-export
from .requests import add_request_logger

__all__ = ["capture_exception", "init_sentry", "add_request_logger"]
