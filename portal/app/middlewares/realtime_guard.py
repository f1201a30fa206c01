"""Utilities to guard Server-Sent Events streams.

This module centralises the per-IP stream limit and queue backpressure for
the driver order stream. Environment variables provide tunables:
- ``MAX_STREAMS_PER_IP`` (default ``20``)
- ``QUEUE_MAX`` (default ``100``)
"""

from __future__ import annotations

import asyncio
import os
from collections import defaultdict
from typing import Any

from fastapi import HTTPException

MAX_STREAMS_PER_IP = int(os.getenv("MAX_STREAMS_PER_IP", "20"))
QUEUE_MAX = int(os.getenv("QUEUE_MAX", "100"))

connections: dict[str, int] = defaultdict(int)


def register(ip: str, limit: int | None = None) -> None:
    """Increment stream count for ``ip`` or raise ``HTTPException``."""
    if connections[ip] >= (limit or MAX_STREAMS_PER_IP):
        raise HTTPException(status_code=429, detail="RETRY")
    connections[ip] += 1


def unregister(ip: str) -> None:
    """Decrement stream count for ``ip``."""
    if connections[ip] > 0:
        connections[ip] -= 1


def queue(maxsize: int | None = None) -> asyncio.Queue[Any]:
    """Return an ``asyncio.Queue`` enforcing ``QUEUE_MAX`` by default."""
    return asyncio.Queue(maxsize=maxsize or QUEUE_MAX)


def push_or_drop(q: asyncio.Queue[Any], item: Any) -> bool:
    """Enqueue ``item``; on overflow replace the backlog with ``None``.

    Returns ``False`` when the consumer fell behind; the ``None`` sentinel
    tells it to close the stream so the client reconnects with a snapshot.
    """
    try:
        q.put_nowait(item)
        return True
    except asyncio.QueueFull:
        while not q.empty():
            q.get_nowait()
        q.put_nowait(None)
        return False
