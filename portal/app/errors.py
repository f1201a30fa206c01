# errors.py

"""Exception taxonomy shared by the store client, repositories and views."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for errors raised by the driver portal."""


class NotFoundError(PortalError):
    """A requested record does not exist in the store."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"{kind} {key!r} not found")
        self.kind = kind
        self.key = key


class StoreError(PortalError):
    """Any failure talking to the hosted store.

    ``op`` names the failing operation (``select``, ``update`` ...) and
    ``status`` carries the HTTP status when the store answered at all.
    """

    def __init__(self, message: str, *, op: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.op = op
        self.status = status


class ConfigurationError(PortalError, RuntimeError):
    """Required configuration is missing or malformed."""


__all__ = ["PortalError", "NotFoundError", "StoreError", "ConfigurationError"]
