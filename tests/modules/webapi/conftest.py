"""Shared fixtures for WebAPI route tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dictionary_api.config_manager import DictionaryApiSettings
from dictionary_api.dictionary import (
    AdmissionController,
    CollectingAnomalySink,
    DefinitionResolver,
    ResponseCache,
)
from dictionary_api.webapi.application import create_app


@pytest.fixture
def build_client(fake_source_cls, fake_clock):
    """Return a factory that builds a ``TestClient`` around a fake source.

    The factory returns ``(client, source, resolver)``.
    """

    def _build(*, source=None, max_requests=100, trusted_proxies=("*",), **settings_overrides):
        source = source if source is not None else fake_source_cls()
        settings = DictionaryApiSettings(
            rate_limit_max_requests=max_requests,
            rate_limit_window_seconds=60,
            trusted_proxies=list(trusted_proxies),
            **settings_overrides,
        )
        resolver = DefinitionResolver(
            source,
            cache=ResponseCache(ttl_seconds=settings.cache_ttl_seconds, clock=fake_clock),
            admission=AdmissionController(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
                clock=fake_clock,
            ),
            anomaly_sink=CollectingAnomalySink(),
        )
        app = create_app(settings, resolver=resolver)
        return TestClient(app), source, resolver

    return _build
