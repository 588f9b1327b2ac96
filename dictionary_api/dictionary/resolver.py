"""The definition resolution pipeline.

:class:`DefinitionResolver` owns the response cache, the admission controller
and the source client, and runs a lookup through them in order::

    admission -> cache lookup -> fetch -> normalize -> (v1) to_legacy -> cache store

Every failure leaves :meth:`DefinitionResolver.resolve` as a
:class:`~dictionary_api.dictionary.errors.DictionaryError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from dictionary_api import logging_manager as log_mgr
from dictionary_api import observability

from .admission import AdmissionController
from .anomalies import AnomalySink, LoggingAnomalySink
from .errors import DictionaryError, RateLimitedError, as_dictionary_error
from .languages import V1
from .models import CacheStatus, LookupRequest, LookupResult, entries_to_payload
from .normalizer import NormalizeOptions, normalize
from .response_cache import ResponseCache
from .text import serialize_payload
from .version_adapter import to_legacy


class DefinitionSource(Protocol):
    """Anything that can fetch raw entries for a word, such as :class:`SourceClient`."""

    async def fetch(self, word: str, language: str) -> Sequence[Any]:
        ...


class DefinitionResolver:
    """Resolve lookups through admission control, the cache and the source.

    Args:
        source: Fetches raw upstream entries.
        cache: Response cache; a fresh one-hour cache is created when omitted.
        admission: Admission controller; when ``None`` no admission is enforced.
        anomaly_sink: Receives normalization anomalies; defaults to logging.
        single_flight: Coalesce concurrent misses for the same fingerprint
            into a single upstream fetch. Off by default, in which case
            concurrent misses each fetch independently.
    """

    def __init__(
        self,
        source: DefinitionSource,
        *,
        cache: Optional[ResponseCache] = None,
        admission: Optional[AdmissionController] = None,
        anomaly_sink: Optional[AnomalySink] = None,
        single_flight: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._cache = cache if cache is not None else ResponseCache()
        self._admission = admission
        self._anomaly_sink = anomaly_sink if anomaly_sink is not None else LoggingAnomalySink()
        self._single_flight = single_flight
        self._inflight: Dict[str, asyncio.Task[str]] = {}
        self._logger = logger or log_mgr.get_logger().getChild("dictionary.resolver")

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def admission(self) -> Optional[AdmissionController]:
        return self._admission

    @property
    def source(self) -> DefinitionSource:
        return self._source

    @property
    def single_flight(self) -> bool:
        return self._single_flight

    async def resolve_params(
        self,
        version: Optional[str],
        language: Optional[str],
        word: Optional[str],
        include: Optional[str | Iterable[str]] = None,
        *,
        client_identity: Optional[str] = None,
    ) -> LookupResult:
        """Validate raw boundary values and resolve them.

        Admission is checked before the values are validated, so malformed
        requests count against the client's window as well.
        """

        try:
            headers = self._admit(client_identity)
            request = LookupRequest.from_params(version, language, word, include)
        except Exception as exc:
            error = self._classify(exc)
            if error is exc:
                raise
            raise error from exc
        return await self._resolve_admitted(request, headers)

    async def resolve(
        self, request: LookupRequest, *, client_identity: Optional[str] = None
    ) -> LookupResult:
        """Return the serialized response for ``request``."""

        try:
            headers = self._admit(client_identity)
        except Exception as exc:
            error = self._classify(exc)
            if error is exc:
                raise
            raise error from exc
        return await self._resolve_admitted(request, headers)

    def _admit(self, client_identity: Optional[str]) -> Dict[str, str]:
        if self._admission is None:
            return {}
        decision = self._admission.check(client_identity)
        headers = decision.headers()
        if not decision.allowed:
            observability.record_admission_rejection()
            error = RateLimitedError(details={"reason": "admission_denied"})
            error.headers.update(headers)
            error.headers["Retry-After"] = headers["RateLimit-Reset"]
            raise error
        return headers

    async def _resolve_admitted(
        self, request: LookupRequest, headers: Dict[str, str]
    ) -> LookupResult:
        fingerprint = request.fingerprint
        try:
            cached = self._cache.get(fingerprint)
            if cached is not None:
                observability.record_cache_result(CacheStatus.HIT.value)
                return LookupResult(
                    body=cached,
                    cache_status=CacheStatus.HIT,
                    fingerprint=fingerprint,
                    headers=headers,
                )

            observability.record_cache_result(CacheStatus.MISS.value)
            body = await asyncio.shield(self._miss_task(request))
        except Exception as exc:
            error = self._classify(exc)
            if error is exc:
                raise
            raise error from exc

        return LookupResult(
            body=body,
            cache_status=CacheStatus.MISS,
            fingerprint=fingerprint,
            headers=headers,
        )

    def _miss_task(self, request: LookupRequest) -> "asyncio.Task[str]":
        """Start (or, with single flight, join) the fetch for ``request``.

        The task is shielded by the caller so a disconnecting client does
        not cancel the upstream call or the cache write.
        """

        key = request.fingerprint.key
        if self._single_flight:
            existing = self._inflight.get(key)
            if existing is not None:
                self._logger.debug(
                    "Joining in-flight lookup",
                    extra={"event": "dictionary.resolver.coalesced", "attributes": {"key": key}},
                )
                return existing

        task = asyncio.ensure_future(self._fetch_and_store(request))
        if self._single_flight:
            self._inflight[key] = task
        task.add_done_callback(lambda done: self._on_miss_done(key, done))
        return task

    def _on_miss_done(self, key: str, task: "asyncio.Task[str]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        # Retrieve the exception so an abandoned task does not warn at exit.
        task.exception()

    async def _fetch_and_store(self, request: LookupRequest) -> str:
        attributes = {
            "word": request.word,
            "language": request.language,
            "api_version": request.api_version,
        }
        with observability.pipeline_stage("fetch", attributes):
            raw_entries = await self._source.fetch(request.word, request.language)
        with observability.pipeline_stage("transform", attributes):
            body = self.build_body(request, raw_entries)
        self._cache.put(request.fingerprint, body)
        return body

    def build_body(self, request: LookupRequest, raw_entries: Sequence[Any]) -> str:
        """Normalize ``raw_entries`` and serialize them in the requested version."""

        entries = normalize(
            request.word,
            request.language,
            list(raw_entries),
            NormalizeOptions(include=request.include),
            sink=self._anomaly_sink,
        )
        payload: List[Dict[str, Any]]
        if request.api_version == V1:
            payload = entries_to_payload(to_legacy(entries))
        else:
            payload = entries_to_payload(entries)
        return serialize_payload(payload)

    def _classify(self, exc: BaseException) -> DictionaryError:
        error = as_dictionary_error(exc)
        if error is not exc:
            self._logger.error(
                "Unexpected failure while resolving definitions",
                exc_info=exc,
                extra={"event": "dictionary.resolver.unexpected_error"},
            )
        observability.record_error(error.kind.value)
        return error

    async def aclose(self) -> None:
        """Close the source when it exposes ``aclose``."""

        closer = getattr(self._source, "aclose", None)
        if closer is not None:
            await closer()


__all__ = ["DefinitionResolver", "DefinitionSource"]
