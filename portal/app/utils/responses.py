"""JSON envelopes shared by the API routes and error handlers."""

from typing import Any, Dict

from ..errors import ConfigurationError, NotFoundError, PortalError, StoreError
from ..middlewares.request_id import current_request_id

ERROR_STATUS: Dict[type, tuple[int, str]] = {
    NotFoundError: (404, "NOT_FOUND"),
    StoreError: (502, "STORE_UNAVAILABLE"),
    ConfigurationError: (500, "MISCONFIGURED"),
}


def ok(data: Any) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Dict[str, Any] | None = None,
    hint: str | None = None,
) -> Dict[str, Any]:
    """Return an error envelope."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if hint:
        error["hint"] = hint
    if details:
        error["details"] = details

    return {"ok": False, "request_id": current_request_id(), "error": error}


def error_status(exc: PortalError) -> tuple[int, str]:
    """Return the HTTP status and error code for a portal exception.

    A store write that matched no row is reported as not found rather than
    as the store being unavailable.
    """
    if isinstance(exc, StoreError) and exc.status == 404:
        return 404, "NOT_FOUND"
    for kind, mapping in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return mapping
    return 500, "INTERNAL"
