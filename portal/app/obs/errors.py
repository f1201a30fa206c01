"""Error sink wiring for unhandled exceptions."""

from __future__ import annotations

import logging
from typing import Any, Optional

import sentry_sdk

logger = logging.getLogger("portal.errors")


def init_sentry(dsn: Optional[str], env: Optional[str] = None) -> bool:
    """Enable the error sink when ``dsn`` is set and report whether it is on."""

    if not dsn:
        logger.info("ERROR_DSN not set; unhandled errors are only logged")
        return False
    sentry_sdk.init(dsn=dsn, environment=env, send_default_pii=False)
    return True


def capture_exception(exc: BaseException, **tags: Any) -> None:
    """Report ``exc`` tagged with ``tags``, or log it when no sink is active."""

    if not sentry_sdk.get_client().is_active():
        logger.error("unhandled exception", exc_info=exc, extra=tags)
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            scope.set_tag(key, value)
        sentry_sdk.capture_exception(exc)
