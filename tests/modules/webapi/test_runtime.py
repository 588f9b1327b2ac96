"""Tests for the maintenance sweep and the uvicorn runner."""

from __future__ import annotations

import asyncio

from dictionary_api.webapi import __main__ as runner
from dictionary_api.webapi.application import run_maintenance


def test_maintenance_sweeps_cache_and_admission(build_client, fake_clock):
    client, _, resolver = build_client()
    client.get("/api/v2/entries/en/hello")
    assert len(resolver.cache) == 1
    assert resolver.admission.tracked_clients == 1

    fake_clock.advance(resolver.cache.ttl_seconds)
    asyncio.run(run_maintenance(resolver))

    assert len(resolver.cache) == 0
    assert resolver.admission.tracked_clients == 0


def test_runner_passes_factory_to_uvicorn(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(runner.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.delenv(runner.CONFIG_FILE_ENV, raising=False)
    config_path = tmp_path / "local.json"

    runner.main(["--port", "8080", "--log-level", "debug", "--config", str(config_path)])

    target, kwargs = calls[0]
    assert target == "dictionary_api.webapi.application:create_app"
    assert kwargs["factory"] is True
    assert kwargs["port"] == 8080
    assert kwargs["log_level"] == "debug"
    assert runner.os.environ[runner.CONFIG_FILE_ENV] == str(config_path)
    monkeypatch.delenv(runner.CONFIG_FILE_ENV)
