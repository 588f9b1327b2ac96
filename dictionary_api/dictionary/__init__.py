"""Definition resolution pipeline.

This package turns a word + language pair into dictionary entries: it fetches
raw results from the upstream source, normalizes them into a stable schema,
optionally downgrades them to the legacy ``v1`` shape, and caches the
serialized response behind per-client admission control.

Key Components:
    - SourceClient: pooled HTTP client for the upstream source
    - normalize: raw entries -> CanonicalEntry list, reporting anomalies
    - to_legacy: CanonicalEntry list -> LegacyEntry list
    - ResponseCache: TTL cache of serialized bodies keyed by fingerprint
    - AdmissionController: fixed-window per-client request ceiling
    - DefinitionResolver: runs a lookup through all of the above

Usage Example:
    from dictionary_api.dictionary import (
        AdmissionController,
        DefinitionResolver,
        LookupRequest,
        SourceClient,
    )

    async with SourceClient() as source:
        resolver = DefinitionResolver(source, admission=AdmissionController())
        request = LookupRequest.from_params("v2", "en", "hello", include="example")
        result = await resolver.resolve(request, client_identity="203.0.113.7")
        print(result.cache_status, result.body)
"""

from .admission import (
    AdmissionController,
    AdmissionDecision,
    ClientIdentityResolver,
)

from .anomalies import (
    AnomalyEvent,
    AnomalyRule,
    AnomalySink,
    CollectingAnomalySink,
    LoggingAnomalySink,
)

from .errors import (
    DictionaryError,
    ErrorKind,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
    as_dictionary_error,
)

from .models import (
    CacheStatus,
    CanonicalEntry,
    Definition,
    LegacyEntry,
    LookupRequest,
    LookupResult,
    Meaning,
    Phonetic,
    RequestFingerprint,
)

from .normalizer import NormalizeOptions, normalize

from .response_cache import CacheLookup, CacheStats, EntryState, ResponseCache

from .resolver import DefinitionResolver, DefinitionSource

from .source_client import SourceClient

from .version_adapter import to_legacy

__all__ = [
    # Admission
    "AdmissionController",
    "AdmissionDecision",
    "ClientIdentityResolver",
    # Anomalies
    "AnomalyEvent",
    "AnomalyRule",
    "AnomalySink",
    "CollectingAnomalySink",
    "LoggingAnomalySink",
    # Errors
    "DictionaryError",
    "ErrorKind",
    "InternalError",
    "NotFoundError",
    "RateLimitedError",
    "UpstreamError",
    "as_dictionary_error",
    # Models
    "CacheStatus",
    "CanonicalEntry",
    "Definition",
    "LegacyEntry",
    "LookupRequest",
    "LookupResult",
    "Meaning",
    "Phonetic",
    "RequestFingerprint",
    # Pipeline stages
    "NormalizeOptions",
    "normalize",
    "to_legacy",
    "CacheLookup",
    "CacheStats",
    "EntryState",
    "ResponseCache",
    "SourceClient",
    # Resolver
    "DefinitionResolver",
    "DefinitionSource",
]
