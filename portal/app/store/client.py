"""Client for the hosted relational store.

The store exposes a PostgREST-style REST API under ``{base}/rest/v1`` and
relays row changes onto redis pub/sub (see :mod:`.changes`). One
:class:`StoreClient` is created per process and shared by every repository;
it offers exactly three capabilities: ``select``, ``update`` and
``subscribe``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping

import anyio
import httpx
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..errors import StoreError
from ..obs import add_request_logger
from ..obs.requests import SLOW_REQUEST_MS
from ..routes_metrics import change_events_total, store_requests_total
from .changes import channel_for, decode_event, matches, publish_change

logger = logging.getLogger("portal.store")

ChangeHandler = Callable[[dict[str, Any]], Awaitable[None] | None]

REST_PREFIX = "/rest/v1"
POLL_TIMEOUT = 1.0


def eq(value: Any) -> str:
    """Return a PostgREST equality filter for ``value``."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class Subscription:
    """Handle for a standing change channel.

    ``unsubscribe`` closes the channel permanently. It may be called any
    number of times and never raises; teardown failures are logged.
    """

    def __init__(self, name: str, closer: Callable[[], Awaitable[None]]) -> None:
        self.name = name
        self._closer = closer
        self.closed = False

    async def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        with anyio.CancelScope(shield=True):
            try:
                await self._closer()
            except Exception:
                logger.warning("closing subscription %s failed", self.name, exc_info=True)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unsubscribe()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Subscription({self.name}, {state})"


class StoreClient:
    """Query, mutate and subscribe against the hosted store."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        redis: Redis | None = None,
        *,
        timeout: float = 5.0,
        slow_ms: int = SLOW_REQUEST_MS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._redis = redis
        self._http = httpx.AsyncClient(
            base_url=self.base_url + REST_PREFIX,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        add_request_logger(self._http, slow_ms)

    @classmethod
    def from_settings(cls, settings, redis: Redis | None = None) -> "StoreClient":
        """Build the process-wide client from :class:`config.Settings`."""
        return cls(
            settings.store_url,
            settings.store_anon_key,
            redis,
            timeout=settings.store_timeout_secs,
            slow_ms=settings.store_slow_ms,
        )

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Mapping[str, str] | None = None,
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return the rows of ``table`` matching ``filters``."""
        params = {"select": columns, **(filters or {})}
        if order:
            params["order"] = order
        return await self._request("select", "GET", table, params=params)

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, str],
    ) -> list[dict[str, Any]]:
        """Apply ``values`` to the rows matching ``filters`` in one request.

        Returns the updated rows and publishes one ``UPDATE`` change event per
        row when a change feed is configured.
        """
        if not filters:
            raise ValueError("update requires at least one filter")
        rows = await self._request(
            "update",
            "PATCH",
            table,
            params=dict(filters),
            json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        if self._redis is not None:
            for row in rows:
                await publish_change(self._redis, table, "UPDATE", row)
        return rows

    async def subscribe(
        self,
        table: str,
        on_change: ChangeHandler,
        *,
        column: str | None = None,
        value: Any = None,
    ) -> Subscription:
        """Call ``on_change`` for each change to ``table`` matching the filter.

        Every matching event is handled in its own task, so a slow handler
        does not hold back the next notification.
        """
        if self._redis is None:
            raise StoreError("change feed is not configured", op="subscribe")
        channel = channel_for(table)
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(channel)
        except RedisError as exc:
            store_requests_total.labels(op="subscribe", outcome="error").inc()
            raise StoreError(f"subscribe {table} failed: {exc}", op="subscribe") from exc
        store_requests_total.labels(op="subscribe", outcome="ok").inc()

        handlers: set[asyncio.Task] = set()

        async def dispatch(event: dict[str, Any]) -> None:
            try:
                result = on_change(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("change handler for %s failed", channel)

        async def reader() -> None:
            try:
                while True:
                    message = await pubsub.get_message(
                        ignore_subscribe_messages=True, timeout=POLL_TIMEOUT
                    )
                    if message is None:
                        await asyncio.sleep(0)
                        continue
                    event = decode_event(message.get("data"))
                    if event is None or not matches(event, column, value):
                        continue
                    change_events_total.labels(table=table).inc()
                    task = asyncio.create_task(dispatch(event))
                    handlers.add(task)
                    task.add_done_callback(handlers.discard)
            except RedisError:
                logger.exception("change channel %s dropped", channel)

        reader_task = asyncio.create_task(reader())

        async def close() -> None:
            pending = [reader_task, *handlers]
            for task in pending:
                task.cancel()
            try:
                await asyncio.gather(*pending, return_exceptions=True)
            finally:
                try:
                    await pubsub.unsubscribe(channel)
                finally:
                    await pubsub.aclose()

        suffix = f":{column}={value}" if column else ""
        return Subscription(f"{channel}{suffix}", close)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        op: str,
        method: str,
        table: str,
        *,
        params: Mapping[str, str],
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            response = await self._http.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            store_requests_total.labels(op=op, outcome="error").inc()
            raise StoreError(f"{op} {table} failed: {exc}", op=op) from exc

        if response.status_code >= 400:
            store_requests_total.labels(op=op, outcome="error").inc()
            raise StoreError(
                f"{op} {table} rejected ({response.status_code}): {_error_message(response)}",
                op=op,
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            store_requests_total.labels(op=op, outcome="error").inc()
            raise StoreError(f"{op} {table} returned malformed JSON", op=op) from exc
        if not isinstance(body, list):
            store_requests_total.labels(op=op, outcome="error").inc()
            raise StoreError(f"{op} {table} returned {type(body).__name__}, expected rows", op=op)

        store_requests_total.labels(op=op, outcome="ok").inc()
        return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)[:200]


__all__ = ["StoreClient", "Subscription", "eq"]
