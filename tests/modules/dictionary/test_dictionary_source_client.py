"""Tests for the upstream source HTTP client."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, List

import httpx
import pytest

from dictionary_api.dictionary import (
    NotFoundError,
    RateLimitedError,
    SourceClient,
    UpstreamError,
)
from dictionary_api.dictionary.source_client import (
    DEFAULT_SOURCE_URL,
    TERM_NOT_FOUND_ERROR,
    build_query_params,
)

FRAMING = ")]}'"


def _framed(single_results: Any) -> str:
    return FRAMING + json.dumps({"feature-callback": {"payload": {"single_results": single_results}}})


def _fetch(handler: Callable[[httpx.Request], httpx.Response], word: str = "hello", language: str = "en"):
    requests: List[httpx.Request] = []

    def _recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def _run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
        source = SourceClient(client=client)
        try:
            return await source.fetch(word, language)
        finally:
            await client.aclose()

    return asyncio.run(_run()), requests


def test_fetch_returns_single_results(hello_results):
    results, requests = _fetch(lambda request: httpx.Response(200, text=_framed(hello_results)))

    assert results == hello_results
    assert len(requests) == 1
    request = requests[0]
    assert str(request.url).startswith(DEFAULT_SOURCE_URL)
    assert request.url.params["async"].startswith("term:hello,corpus:en,")
    assert request.url.params["fcv"] == "3"
    assert "Mozilla" in request.headers["user-agent"]


def test_query_params_escape_the_term():
    params = build_query_params("rock 'n' roll", "pt-BR")

    assert params["async"].startswith("term:rock%20'n'%20roll,corpus:pt-BR,")
    assert params["async"].endswith("hhdr:true,hwdgt:true,wfp:true,ttl:,tsl:,ptl:")


@pytest.mark.parametrize(
    ("status", "expected"),
    [(404, NotFoundError), (429, RateLimitedError), (500, UpstreamError), (503, UpstreamError)],
)
def test_status_codes_map_to_error_kinds(status, expected):
    with pytest.raises(expected):
        _fetch(lambda request: httpx.Response(status, text="{}"))


def test_upstream_throttling_has_its_own_message():
    with pytest.raises(RateLimitedError) as excinfo:
        _fetch(lambda request: httpx.Response(429))

    assert "upstream server" in excinfo.value.message
    assert excinfo.value.status_code == 429


@pytest.mark.parametrize(
    "body",
    [_framed([]), FRAMING + json.dumps({"feature-callback": {"payload": {}}})],
)
def test_empty_results_are_not_found(body):
    with pytest.raises(NotFoundError) as excinfo:
        _fetch(lambda request: httpx.Response(200, text=body))

    assert excinfo.value.details["reason"] == "empty_results"


def test_term_not_found_widget_is_not_found():
    body = _framed([{"widget": {"error": TERM_NOT_FOUND_ERROR}}])

    with pytest.raises(NotFoundError) as excinfo:
        _fetch(lambda request: httpx.Response(200, text=body))

    assert excinfo.value.details["reason"] == "term_not_found"


def test_null_widget_is_skipped_when_looking_for_errors(hello_results):
    body = _framed([{"widget": None}, *hello_results, {"widget": {"error": TERM_NOT_FOUND_ERROR}}])

    with pytest.raises(NotFoundError) as excinfo:
        _fetch(lambda request: httpx.Response(200, text=body))

    assert excinfo.value.details["reason"] == "term_not_found"


def test_other_widget_errors_are_upstream_errors():
    body = _framed([{"widget": {"error": "SERVER_ERROR"}}])

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(lambda request: httpx.Response(200, text=body))

    assert excinfo.value.details == {"reason": "widget_error", "error": "SERVER_ERROR"}


@pytest.mark.parametrize(
    ("body", "reason"),
    [
        (")]}", "short_body"),
        (FRAMING + "{not json", "invalid_json"),
        (FRAMING + "[1, 2]", "unexpected_envelope"),
        (FRAMING + json.dumps({"feature-callback": {"payload": {"single_results": {}}}}), "unexpected_envelope"),
    ],
)
def test_malformed_bodies_are_upstream_errors(body, reason):
    with pytest.raises(UpstreamError) as excinfo:
        _fetch(lambda request: httpx.Response(200, text=body))

    assert excinfo.value.details["reason"] == reason


def test_transport_failures_are_upstream_errors():
    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(_refuse)

    assert excinfo.value.details["reason"] == "transport_error"
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_injected_client_is_not_closed_by_source():
    async def _run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        async with SourceClient(client=client):
            pass
        closed = client.is_closed
        await client.aclose()
        return closed

    assert asyncio.run(_run()) is False


def test_empty_base_url_is_rejected():
    with pytest.raises(ValueError):
        SourceClient(base_url="")
