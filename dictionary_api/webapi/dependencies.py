"""Dependency wiring for the FastAPI application."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request

from .. import logging_manager as log_mgr
from ..config_manager import DictionaryApiSettings
from ..dictionary import (
    AdmissionController,
    ClientIdentityResolver,
    DefinitionResolver,
    ResponseCache,
    SourceClient,
)

logger = log_mgr.logger

FORWARDED_FOR_HEADER = "x-forwarded-for"


def build_resolver(settings: DictionaryApiSettings) -> DefinitionResolver:
    """Construct the lookup pipeline described by ``settings``."""

    source = SourceClient(
        base_url=settings.source_url,
        timeout=settings.source_timeout_seconds,
        max_connections=settings.source_max_connections,
        max_keepalive_connections=settings.source_max_keepalive_connections,
        keepalive_expiry=settings.source_keepalive_expiry_seconds,
        user_agent=settings.source_user_agent,
    )
    cache = ResponseCache(
        ttl_seconds=settings.cache_ttl_seconds,
        check_period_seconds=settings.cache_check_period_seconds,
    )
    admission: Optional[AdmissionController] = None
    if settings.rate_limit_enabled:
        admission = AdmissionController(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    logger.info(
        "Dictionary resolver configured",
        extra={
            "event": "webapi.resolver.configured",
            "attributes": {
                "cache_ttl_seconds": settings.cache_ttl_seconds,
                "rate_limit_enabled": settings.rate_limit_enabled,
                "rate_limit_max_requests": settings.rate_limit_max_requests,
                "rate_limit_window_seconds": settings.rate_limit_window_seconds,
                "single_flight": settings.single_flight,
            },
        },
    )
    return DefinitionResolver(
        source,
        cache=cache,
        admission=admission,
        single_flight=settings.single_flight,
    )


def get_resolver(request: Request) -> DefinitionResolver:
    """Return the resolver owned by the running application."""
    return request.app.state.resolver


def get_identity_resolver(request: Request) -> ClientIdentityResolver:
    return request.app.state.identity_resolver


def get_client_identity(
    request: Request,
    identity_resolver: Annotated[ClientIdentityResolver, Depends(get_identity_resolver)],
) -> str:
    """Derive the client identity used for admission control."""

    peer = request.client.host if request.client else None
    return identity_resolver.resolve(peer, request.headers.get(FORWARDED_FOR_HEADER))


ResolverDep = Annotated[DefinitionResolver, Depends(get_resolver)]
ClientIdentityDep = Annotated[str, Depends(get_client_identity)]


__all__ = [
    "ClientIdentityDep",
    "ResolverDep",
    "build_resolver",
    "get_client_identity",
    "get_identity_resolver",
    "get_resolver",
]
