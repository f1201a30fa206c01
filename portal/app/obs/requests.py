from __future__ import annotations

import logging
import os
import random
import time

import httpx

SLOW_REQUEST_MS = int(os.getenv("STORE_SLOW_MS", "500"))
SAMPLE_RATE = 0.01

logger = logging.getLogger("obs")


def add_request_logger(client: httpx.AsyncClient, slow_ms: int = SLOW_REQUEST_MS) -> None:
    """Attach timing-based logging to store requests made by ``client``."""

    async def on_request(request: httpx.Request) -> None:
        request.extensions["portal_started"] = time.perf_counter()

    async def on_response(response: httpx.Response) -> None:
        started = response.request.extensions.get("portal_started")
        if started is None:  # pragma: no cover - hook order guaranteed by httpx
            return
        total_ms = (time.perf_counter() - started) * 1000
        target = f"{response.request.method} {response.request.url.path}"
        if total_ms > slow_ms:
            logger.warning(
                "slow store request %dms %s status=%s",
                int(total_ms),
                target,
                response.status_code,
            )
        elif random.random() < SAMPLE_RATE:
            logger.info(
                "store request %dms %s status=%s",
                int(total_ms),
                target,
                response.status_code,
            )

    client.event_hooks["request"].append(on_request)
    client.event_hooks["response"].append(on_response)
