"""HTTP client for the upstream dictionary source."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from dictionary_api import logging_manager as log_mgr
from dictionary_api import observability

from .errors import NotFoundError, RateLimitedError, UpstreamError

DEFAULT_SOURCE_URL = "https://www.google.com/async/callback:5493"
SOURCE_FC_TOKEN = (
    "ErUBCndBTlVfTnFUN29LdXdNSlQ2VlZoWUIwWE1HaElOclFNU29TOFF4ZGxGbV9zbzA3YmQ2NnJyQXlHNVlrb3l3OXgtREpRbXpNZ0M1NWZPeFo4NjQyVlA3S2ZQOHpYa292MFBMaDQweGRNQjR4eTlld1E4bDlCbXFJMBIWU2JzSllkLVpHc3J5OVFPb3Q2aVlDZxoiQU9NWVJ3QmU2cHRlbjZEZmw5U0lXT1lOR3hsM2xBWGFldw"
)
SOURCE_FC_VERSION = "3"
FRAMING_PREFIX_LENGTH = 4
TERM_NOT_FOUND_ERROR = "TERM_NOT_FOUND_ERROR"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONNECTIONS = 50
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 10
DEFAULT_KEEPALIVE_EXPIRY_SECONDS = 15.0


def build_query_params(word: str, language: str) -> Dict[str, str]:
    """Return the query parameters the async-callback endpoint expects."""

    term = quote(word, safe="!~*'()")
    return {
        "fc": SOURCE_FC_TOKEN,
        "fcv": SOURCE_FC_VERSION,
        "async": (
            f"term:{term},corpus:{language},"
            "hhdr:true,hwdgt:true,wfp:true,ttl:,tsl:,ptl:"
        ),
    }


def _widget_error(single_results: List[Any]) -> Optional[Any]:
    for item in single_results:
        widget = item.get("widget") if isinstance(item, Mapping) else None
        if widget:
            return widget.get("error") if isinstance(widget, Mapping) else None
    return None


class SourceClient:
    """Fetch raw entries for a word from the upstream source.

    The underlying :class:`httpx.AsyncClient` keeps a connection pool that is
    reused across calls. When no client is supplied one is created and owned
    by this instance; close it with :meth:`aclose` or ``async with``.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_SOURCE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
        keepalive_expiry: float = DEFAULT_KEEPALIVE_EXPIRY_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be a non-empty string")
        self._base_url = base_url
        self._headers = {
            "accept": "*/*",
            "accept-language": "en-US,en;q=0.9",
            "user-agent": user_agent,
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_keepalive_connections,
                keepalive_expiry=keepalive_expiry,
            ),
        )
        self._logger = logger or log_mgr.get_logger().getChild("dictionary.source")

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch(self, word: str, language: str) -> List[Dict[str, Any]]:
        """Return the raw ``single_results`` list for ``word`` in ``language``.

        Raises:
            NotFoundError: no results, or the source reports the term unknown.
            RateLimitedError: the source throttled the request.
            UpstreamError: transport failure, unexpected status or malformed body.
        """

        attributes: Dict[str, Any] = {"word": word, "language": language}
        self._logger.debug(
            "Dispatching dictionary source request",
            extra={"event": "dictionary.source.request", "attributes": attributes},
        )

        try:
            response = await self._client.get(
                self._base_url,
                params=build_query_params(word, language),
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            self._logger.error(
                "Dictionary source request failed",
                extra={
                    "event": "dictionary.source.transport_error",
                    "attributes": {**attributes, "error": str(exc)},
                },
                exc_info=True,
            )
            observability.record_upstream_outcome("transport_error")
            raise UpstreamError(details={"reason": "transport_error"}) from exc

        status_code = response.status_code
        if status_code == 404:
            observability.record_upstream_outcome("not_found")
            raise NotFoundError(details={"reason": "upstream_404", **attributes})
        if status_code == 429:
            self._logger.warning(
                "Dictionary source throttled the request",
                extra={"event": "dictionary.source.throttled", "attributes": attributes},
            )
            observability.record_upstream_outcome("throttled")
            raise RateLimitedError(
                "Sorry pal, you were just rate limited by the upstream server.",
                details={"reason": "upstream_429"},
            )
        if status_code != 200:
            self._logger.error(
                "Dictionary source returned HTTP %s",
                status_code,
                extra={
                    "event": "dictionary.source.error_response",
                    "attributes": {**attributes, "status_code": status_code},
                },
            )
            observability.record_upstream_outcome("bad_status")
            raise UpstreamError(details={"reason": "bad_status", "status_code": status_code})

        single_results = self._parse_body(response.text, attributes)

        if not single_results:
            observability.record_upstream_outcome("not_found")
            raise NotFoundError(details={"reason": "empty_results", **attributes})

        error = _widget_error(single_results)
        if error == TERM_NOT_FOUND_ERROR:
            observability.record_upstream_outcome("not_found")
            raise NotFoundError(details={"reason": "term_not_found", **attributes})
        if error:
            self._logger.error(
                "Dictionary source reported an error",
                extra={
                    "event": "dictionary.source.widget_error",
                    "attributes": {**attributes, "error": str(error)},
                },
            )
            observability.record_upstream_outcome("widget_error")
            raise UpstreamError(details={"reason": "widget_error", "error": str(error)})

        self._logger.info(
            "Dictionary source request completed",
            extra={
                "event": "dictionary.source.success",
                "attributes": {**attributes, "result_count": len(single_results)},
            },
        )
        observability.record_upstream_outcome("success")
        return single_results

    def _parse_body(self, body: str, attributes: Mapping[str, Any]) -> List[Any]:
        """Strip the framing marker and return ``single_results``."""

        if len(body) <= FRAMING_PREFIX_LENGTH:
            observability.record_upstream_outcome("malformed")
            raise UpstreamError(details={"reason": "short_body", "length": len(body)})
        try:
            data = json.loads(body[FRAMING_PREFIX_LENGTH:])
        except ValueError as exc:
            self._logger.error(
                "Dictionary source returned a malformed body",
                extra={"event": "dictionary.source.malformed", "attributes": dict(attributes)},
            )
            observability.record_upstream_outcome("malformed")
            raise UpstreamError(details={"reason": "invalid_json"}) from exc

        if not isinstance(data, Mapping):
            observability.record_upstream_outcome("malformed")
            raise UpstreamError(details={"reason": "unexpected_envelope"})

        payload = data.get("feature-callback")
        payload = payload.get("payload") if isinstance(payload, Mapping) else None
        single_results = payload.get("single_results") if isinstance(payload, Mapping) else None
        if single_results is None:
            return []
        if not isinstance(single_results, list):
            observability.record_upstream_outcome("malformed")
            raise UpstreamError(details={"reason": "unexpected_envelope"})
        return single_results

    async def aclose(self) -> None:
        """Release pooled connections when this instance owns the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SourceClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


__all__ = [
    "DEFAULT_SOURCE_URL",
    "FRAMING_PREFIX_LENGTH",
    "SourceClient",
    "TERM_NOT_FOUND_ERROR",
    "build_query_params",
]
