"""Driver order page, JSON API and live stream.

``GET /api/drivers/{driver_id}/orders/stream`` emits ``event: orders`` with a
monotonically increasing ``id`` each time the driver's view is re-read. The
view behind a stream is the only one that keeps pickup codes rotating; its
timers and change subscription end with the stream. A stream that cannot be
opened sends a single ``event: error`` and ends.
"""

from __future__ import annotations

import asyncio
import json
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from starlette.background import BackgroundTask

from config import Settings, get_settings

from .domain import Tab
from .errors import NotFoundError, PortalError
from .middlewares.realtime_guard import push_or_drop, register, unregister
from .middlewares.realtime_guard import queue as rt_queue
from .render import render_page, render_view_body
from .repos.orders_repo import OrdersRepo
from .routes_metrics import sse_clients_gauge
from .services.code_rotator import CodeRotator
from .utils.responses import error_status, ok
from .views.driver_orders import DriverOrderView

STREAM_UNAVAILABLE = "Live updates are unavailable right now."

logger = logging.getLogger("portal.stream")

router = APIRouter()


def get_orders_repo(request: Request) -> OrdersRepo:
    """Return the process-wide repository created at startup."""

    repo = getattr(request.app.state, "orders_repo", None)
    if repo is None:
        raise HTTPException(status_code=503, detail="Store client not ready")
    return repo


async def _driver_view(repo: OrdersRepo, driver_id: str) -> DriverOrderView:
    view = DriverOrderView(repo, driver_id)
    await view.require_driver()
    return view


def _page_url(driver_id: str, tab: Tab) -> str:
    return f"/drivers/{quote(driver_id, safe='')}?tab={tab.value}"


# Pages


@router.get("/drivers/{driver_id}", response_class=HTMLResponse)
async def driver_page(
    driver_id: str,
    tab: Tab = Tab.PENDING,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> HTMLResponse:
    """Render the driver's pending and accepted orders."""

    view = DriverOrderView(repo, driver_id, tab=tab)
    await view.load()
    status = 404 if view.not_found else 200
    return HTMLResponse(render_page(view), status_code=status)


@router.post("/drivers/{driver_id}/orders/{order_id}/accept")
async def accept_order_form(
    driver_id: str,
    order_id: int,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> RedirectResponse:
    view = await _driver_view(repo, driver_id)
    await view.accept(order_id)
    return RedirectResponse(_page_url(driver_id, Tab.ACCEPTED), status_code=303)


@router.post("/drivers/{driver_id}/orders/{order_id}/reject")
async def reject_order_form(
    driver_id: str,
    order_id: int,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> RedirectResponse:
    view = await _driver_view(repo, driver_id)
    await view.reject(order_id)
    return RedirectResponse(_page_url(driver_id, Tab.PENDING), status_code=303)


# JSON API


@router.get("/api/drivers/{driver_id}/orders")
async def list_driver_orders(
    driver_id: str,
    tab: Tab = Tab.PENDING,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> dict:
    """Return the driver's view state."""

    view = DriverOrderView(repo, driver_id, tab=tab)
    await view.load()
    if view.not_found:
        raise NotFoundError("driver", driver_id)
    return ok(view.snapshot())


@router.post("/api/drivers/{driver_id}/orders/{order_id}/accept")
async def accept_order(
    driver_id: str,
    order_id: int,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> dict:
    """Claim ``order_id`` for the driver and return the re-read view."""

    view = await _driver_view(repo, driver_id)
    view.switch_tab(Tab.ACCEPTED)
    await view.accept(order_id)
    return ok(view.snapshot())


@router.post("/api/drivers/{driver_id}/orders/{order_id}/reject")
async def reject_order(
    driver_id: str,
    order_id: int,
    repo: OrdersRepo = Depends(get_orders_repo),
) -> dict:
    """Release ``order_id`` and return the re-read view."""

    view = await _driver_view(repo, driver_id)
    await view.reject(order_id)
    return ok(view.snapshot())


# Live stream


@router.get(
    "/api/drivers/{driver_id}/orders/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_driver_orders(
    driver_id: str,
    request: Request = None,  # type: ignore[assignment]
    repo: OrdersRepo = Depends(get_orders_repo),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Stream the driver's view via SSE while keeping pickup codes rotating."""

    ip = request.client.host if request and request.client else "?"
    register(ip, settings.max_streams_per_ip)
    released = False

    def release() -> None:
        nonlocal released
        if not released:
            released = True
            unregister(ip)

    queue: asyncio.Queue[str | None] = rt_queue()
    seq = 0

    def on_update(view: DriverOrderView) -> None:
        nonlocal seq
        seq += 1
        data = json.dumps({**view.snapshot(), "html": render_view_body(view)})
        push_or_drop(queue, f"event: orders\nid: {seq}\ndata: {data}\n\n")

    view = DriverOrderView(
        repo,
        driver_id,
        rotator=CodeRotator(repo, settings.code_rotation_secs),
        on_update=on_update,
    )

    async def event_gen():
        sse_clients_gauge.inc()
        try:
            async with view:
                if view.not_found:
                    on_update(view)
                    yield queue.get_nowait()
                    return
                while True:
                    try:
                        item = await asyncio.wait_for(
                            queue.get(), timeout=settings.sse_keepalive_secs
                        )
                    except asyncio.TimeoutError:
                        yield ":keepalive\n\n"
                        continue
                    if item is None:
                        break
                    yield item
        except PortalError as exc:
            _, code = error_status(exc)
            logger.warning("order stream ended: %s", exc, extra={"driver": driver_id})
            data = json.dumps({"code": code, "message": STREAM_UNAVAILABLE})
            yield f"event: error\ndata: {data}\n\n"
        finally:
            sse_clients_gauge.dec()
            release()

    # frees the slot when the body is never iterated
    return StreamingResponse(
        event_gen(), media_type="text/event-stream", background=BackgroundTask(release)
    )


__all__ = ["router", "get_orders_repo"]
