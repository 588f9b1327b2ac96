"""HTTP routes for dictionary lookups and service status."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import uuid4

from fastapi import APIRouter, Query, Request, Response

from .. import logging_manager as log_mgr
from ..dictionary import DictionaryError
from .dependencies import ClientIdentityDep, ResolverDep
from .schemas import (
    AdmissionStatsPayload,
    CacheStatsPayload,
    ErrorResponse,
    FormattedCacheStatsPayload,
    HealthResponse,
    StatsResponse,
)

logger = log_mgr.get_logger().getChild("webapi.routes")

HEADER_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
HEADER_CACHE_STATUS = "X-Cache"
HEADER_REQUEST_ID = "X-Request-ID"
JSON_MEDIA_TYPE = "application/json"

router = APIRouter()


def _uptime(request: Request) -> float:
    started_at = getattr(request.app.state, "started_at", None)
    if started_at is None:
        return 0.0
    return round(time.monotonic() - started_at, 3)


@router.get(
    "/api/{version}/entries/{language}/{word}",
    tags=["entries"],
    responses={
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_entries(
    version: str,
    language: str,
    word: str,
    request: Request,
    resolver: ResolverDep,
    client_identity: ClientIdentityDep,
    include: Annotated[Optional[str], Query(description="Comma-separated include flags")] = None,
) -> Response:
    """Return dictionary entries for ``word`` in the ``version`` response shape."""

    correlation_id = request.headers.get(HEADER_REQUEST_ID) or uuid4().hex
    with log_mgr.log_context(correlation_id=correlation_id, client_id=client_identity):
        try:
            result = await resolver.resolve_params(
                version,
                language,
                word,
                include,
                client_identity=client_identity,
            )
        except DictionaryError as exc:
            logger.info(
                "Lookup failed",
                extra={
                    "event": "webapi.entries.failed",
                    "status": exc.status_code,
                    "attributes": {
                        "kind": exc.kind.value,
                        "version": version,
                        "language": language,
                        **exc.details,
                    },
                },
            )
            exc.headers.setdefault(HEADER_REQUEST_ID, correlation_id)
            raise

        logger.info(
            "Lookup served",
            extra={
                "event": "webapi.entries.served",
                "status": 200,
                "attributes": {
                    "fingerprint": result.fingerprint.key,
                    "cache": result.cache_status.value,
                },
            },
        )

    headers = {
        HEADER_ALLOW_ORIGIN: "*",
        HEADER_CACHE_STATUS: result.cache_status.value,
        HEADER_REQUEST_ID: correlation_id,
        **dict(result.headers),
    }
    return Response(content=result.body, media_type=JSON_MEDIA_TYPE, headers=headers)


@router.get("/health", response_model=HealthResponse, tags=["health"])
def health(request: Request, resolver: ResolverDep) -> HealthResponse:
    """Report liveness together with the cache counters."""

    stats = resolver.cache.stats()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=_uptime(request),
        cache=CacheStatsPayload(
            hits=stats.hits,
            misses=stats.misses,
            keys=stats.keys,
            hit_rate=stats.hit_rate,
        ),
    )


@router.get("/api/stats", response_model=StatsResponse, tags=["health"])
def stats(request: Request, resolver: ResolverDep) -> StatsResponse:
    """Return cache and admission statistics for dashboards."""

    cache_stats = resolver.cache.stats()
    admission = resolver.admission
    if admission is None:
        admission_payload = AdmissionStatsPayload(enabled=False)
    else:
        admission_payload = AdmissionStatsPayload(
            enabled=True,
            tracked_clients=admission.tracked_clients,
            max_requests=admission.max_requests,
            window_seconds=admission.window_seconds,
        )
    return StatsResponse(
        cache=FormattedCacheStatsPayload(
            hits=cache_stats.hits,
            misses=cache_stats.misses,
            keys=cache_stats.keys,
            hit_rate=f"{cache_stats.hit_rate * 100:.2f}%",
        ),
        admission=admission_payload,
        uptime=_uptime(request),
    )


__all__ = ["router"]
