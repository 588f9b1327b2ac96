"""Application factory for the FastAPI backend."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import config_manager as cfg
from .. import load_environment
from .. import logging_manager as log_mgr
from .. import observability
from ..dictionary import (
    ClientIdentityResolver,
    DefinitionResolver,
    DictionaryError,
    NotFoundError,
    as_dictionary_error,
)
from .dependencies import build_resolver
from .metrics import setup_metrics
from .routes import HEADER_ALLOW_ORIGIN, router

load_environment()

LOGGER = log_mgr.get_logger().getChild("webapi.application")


def _error_response(error: DictionaryError) -> JSONResponse:
    headers = {HEADER_ALLOW_ORIGIN: "*", **error.headers}
    return JSONResponse(error.to_payload(), status_code=error.status_code, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the public ``{title, message, resolution}`` body."""

    @app.exception_handler(DictionaryError)
    async def _handle_dictionary_error(request: Request, exc: DictionaryError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths, such as an entries URL with a missing segment.
        if exc.status_code == 404:
            return _error_response(NotFoundError(details={"reason": "unknown_route"}))
        return JSONResponse(
            {"detail": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        error = as_dictionary_error(exc)
        LOGGER.error(
            "Unhandled error while serving %s",
            request.url.path,
            exc_info=exc,
            extra={"event": "webapi.unhandled_error", "status": error.status_code},
        )
        observability.record_error(error.kind.value)
        return _error_response(error)


async def run_maintenance(resolver: DefinitionResolver) -> None:
    """Drop expired cache entries and stale admission windows once."""

    removed = resolver.cache.sweep()
    forgotten = resolver.admission.sweep() if resolver.admission is not None else 0
    if removed or forgotten:
        LOGGER.debug(
            "Maintenance sweep completed",
            extra={
                "event": "webapi.maintenance.sweep",
                "attributes": {"expired_entries": removed, "stale_clients": forgotten},
            },
        )


async def _maintenance_loop(resolver: DefinitionResolver, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await run_maintenance(resolver)
        except Exception:  # pragma: no cover - next tick retries
            LOGGER.exception(
                "Maintenance sweep failed",
                extra={"event": "webapi.maintenance.failed"},
            )


def create_app(
    settings: Optional[cfg.DictionaryApiSettings] = None,
    *,
    resolver: Optional[DefinitionResolver] = None,
) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    ``settings`` defaults to the layered configuration; ``resolver`` defaults
    to one built from those settings. Tests pass both to avoid network access.
    """

    settings = settings or cfg.get_settings()
    log_mgr.configure_logging_level(log_level=settings.log_level)

    app = FastAPI(title="dictionary-api", version="0.1.0")
    app.state.settings = settings
    app.state.resolver = resolver if resolver is not None else build_resolver(settings)
    app.state.identity_resolver = ClientIdentityResolver(settings.trusted_proxies)
    app.state.started_at = time.monotonic()
    app.state.maintenance_task = None

    register_exception_handlers(app)
    app.add_middleware(
        GZipMiddleware,
        minimum_size=settings.gzip_minimum_size,
        compresslevel=settings.gzip_compress_level,
    )

    @app.on_event("startup")
    async def _start_maintenance() -> None:
        app.state.started_at = time.monotonic()
        app.state.maintenance_task = asyncio.create_task(
            _maintenance_loop(app.state.resolver, settings.cache_check_period_seconds)
        )
        LOGGER.info(
            "Dictionary API started",
            extra={
                "event": "webapi.startup",
                "attributes": {"check_period_seconds": settings.cache_check_period_seconds},
            },
        )

    @app.on_event("shutdown")
    async def _stop_maintenance() -> None:
        task = app.state.maintenance_task
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            app.state.maintenance_task = None
        try:
            await app.state.resolver.aclose()
        except Exception:  # pragma: no cover - shutdown continues
            LOGGER.exception("Failed to close the dictionary source")
        LOGGER.info("Dictionary API stopped", extra={"event": "webapi.shutdown"})

    setup_metrics(app)
    app.include_router(router)
    return app


__all__ = ["create_app", "register_exception_handlers", "run_maintenance"]
