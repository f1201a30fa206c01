# main.py

"""FastAPI application serving the driver order portal."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

from .config.validate import validate_on_boot
from .errors import PortalError
from .middlewares import LoggingMiddleware, RequestIdMiddleware
from .obs import capture_exception, init_sentry
from .obs.logging import configure_logging
from .repos_store import StoreOrdersRepo
from .routes_drivers import router as drivers_router
from .routes_metrics import router as metrics_router
from .store import StoreClient
from .utils.responses import err, error_status, ok

validate_on_boot()
settings = get_settings()

configure_logging(settings.log_level)
logger = logging.getLogger("portal")
init_sentry(settings.error_dsn, env=settings.app_env)

app = FastAPI(
    title="Driver Orders Portal",
    version="1.0.0",
    servers=[{"url": "/"}],
    openapi_url="/openapi.json",
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    status, code = error_status(exc)
    log_fn = logger.error if status == 500 else logger.warning
    log_fn(
        str(exc),
        extra={"status": status, "route": request.url.path},
    )
    return JSONResponse(err(code, str(exc)), status_code=status)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        exc.detail,
        extra={"status": exc.status_code, "route": request.url.path},
    )
    return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.exception(
        "unhandled_error",
        extra={"status": 500, "route": request.url.path},
    )
    capture_exception(exc, route=request.url.path)
    return JSONResponse(err(500, "Internal Server Error"), status_code=500)


@app.on_event("startup")
async def open_store() -> None:
    """Create the shared store client and change feed connection."""

    app.state.redis = redis.from_url(settings.redis_url, decode_responses=True)
    app.state.store = StoreClient.from_settings(settings, app.state.redis)
    app.state.orders_repo = StoreOrdersRepo(app.state.store)
    logger.info("store client ready for %s", settings.store_url)


@app.on_event("shutdown")
async def close_store() -> None:
    store = getattr(app.state, "store", None)
    if store is not None:
        await store.aclose()
    client = getattr(app.state, "redis", None)
    if client is not None:
        await client.aclose()


@app.get("/healthz", tags=["Ops"])
async def healthz() -> dict:
    return ok({"status": "ok", "store": settings.store_url})


app.include_router(drivers_router)
app.include_router(metrics_router)
