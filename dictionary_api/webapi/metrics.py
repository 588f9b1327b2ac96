"""Prometheus exporter wiring for the dictionary API.

Pipeline metrics live in :mod:`dictionary_api.observability`; this module
adds automatic HTTP instrumentation via prometheus-fastapi-instrumentator
and exposes ``/metrics``.

Usage:
    from .metrics import setup_metrics
    setup_metrics(app)  # call once in create_app()
"""

from __future__ import annotations

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Gauge, Info, generate_latest
from prometheus_fastapi_instrumentator import Instrumentator

from .. import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("webapi.metrics")

METRICS_ENDPOINT = "/metrics"
EXCLUDED_HANDLERS = [METRICS_ENDPOINT, "/health"]

APP_INFO = Info(
    "dictionary_api",
    "dictionary-api application information",
)

UP_GAUGE = Gauge(
    "dictionary_api_up",
    "Whether the dictionary API is up (1=up, 0=down)",
)

_setup_done = False


def setup_metrics(app: FastAPI) -> None:
    """Wire Prometheus metrics into the FastAPI application.

    Idempotent: test suites that build several apps share the global
    registry, so HTTP instrumentation is only registered once.
    """
    global _setup_done

    try:
        APP_INFO.info({
            "version": getattr(app, "version", "unknown"),
            "title": getattr(app, "title", "dictionary-api"),
        })
    except ValueError:
        pass  # Already set
    UP_GAUGE.set(1)

    if not _setup_done:
        try:
            instrumentator = Instrumentator(
                should_group_status_codes=False,
                should_ignore_untemplated=True,
                should_respect_env_var=False,
                should_instrument_requests_inprogress=True,
                excluded_handlers=EXCLUDED_HANDLERS,
                inprogress_name="dictionary_api_http_requests_inprogress",
                inprogress_labels=True,
            )
            instrumentator.instrument(app)
            instrumentator.expose(app, endpoint=METRICS_ENDPOINT, include_in_schema=False)
        except ValueError:
            # Collectors already registered by an earlier app instance.
            logger.debug(
                "HTTP instrumentation already registered",
                extra={"event": "webapi.metrics.duplicate"},
            )
        _setup_done = True

    if not any(getattr(route, "path", None) == METRICS_ENDPOINT for route in app.routes):
        @app.get(METRICS_ENDPOINT, include_in_schema=False)
        async def _metrics_fallback() -> Response:
            return Response(
                content=generate_latest(REGISTRY),
                media_type=CONTENT_TYPE_LATEST,
            )

    @app.on_event("shutdown")
    async def _mark_down() -> None:
        UP_GAUGE.set(0)


__all__ = ["setup_metrics"]
