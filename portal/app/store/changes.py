"""Change events published on the store's redis change channels.

The hosted store's change feed is relayed onto one pub/sub channel per table
(``rt:store:{table}``). Every message is a JSON object::

    {"table": "inventory_requests", "type": "UPDATE",
     "record": {...}, "old_record": {...}, "ts": 1700000000.0}

Subscribers treat an event as "something changed" and re-read; the record
bodies are only used for channel-side filtering.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

CHANNEL_PREFIX = "rt:store:"
EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")

logger = logging.getLogger("portal.store")


def channel_for(table: str) -> str:
    """Return the pub/sub channel carrying changes for ``table``."""
    return f"{CHANNEL_PREFIX}{table}"


def make_event(
    table: str,
    type_: str,
    record: dict[str, Any] | None = None,
    old_record: dict[str, Any] | None = None,
) -> dict[str, Any]:
    if type_ not in EVENT_TYPES:
        raise ValueError(f"unknown change type {type_!r}")
    return {
        "table": table,
        "type": type_,
        "record": record or {},
        "old_record": old_record or {},
        "ts": datetime.now(timezone.utc).timestamp(),
    }


def decode_event(data: Any) -> dict[str, Any] | None:
    """Parse a raw pub/sub payload, returning ``None`` when it is not an event."""
    if isinstance(data, bytes):
        data = data.decode()
    try:
        event = json.loads(data)
    except (TypeError, ValueError):
        return None
    if not isinstance(event, dict) or event.get("type") not in EVENT_TYPES:
        return None
    return event


def matches(event: dict[str, Any], column: str | None, value: Any) -> bool:
    """Return ``True`` if the new or old record satisfies ``column == value``."""
    if column is None:
        return True
    for key in ("record", "old_record"):
        body = event.get(key) or {}
        if column in body and body[column] == value:
            return True
    return False


async def publish_change(
    redis: Redis,
    table: str,
    type_: str,
    record: dict[str, Any] | None = None,
    old_record: dict[str, Any] | None = None,
) -> int:
    """Publish a change event for ``table`` and return the receiver count.

    Publishing is best effort: the write it describes already happened, so a
    redis failure is logged and reported as zero receivers.
    """
    payload = json.dumps(make_event(table, type_, record, old_record), default=str)
    try:
        return await redis.publish(channel_for(table), payload)
    except RedisError:
        logger.warning("change event for %s not published", table, exc_info=True)
        return 0
