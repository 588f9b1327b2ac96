"""In-memory cache of serialized lookup responses with time-based expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from dictionary_api import logging_manager as log_mgr
from dictionary_api import observability

from .models import RequestFingerprint

logger = log_mgr.get_logger().getChild("dictionary.cache")

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_CHECK_PERIOD_SECONDS = 10 * 60

Clock = Callable[[], float]
CacheKey = RequestFingerprint | str


class EntryState(str, Enum):
    ABSENT = "absent"
    EXPIRED = "expired"
    FRESH = "fresh"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    body: str
    stored_at: float


@dataclass(frozen=True, slots=True)
class CacheLookup:
    state: EntryState
    entry: Optional[CacheEntry] = None

    @property
    def body(self) -> Optional[str]:
        if self.state is EntryState.FRESH and self.entry is not None:
            return self.entry.body
        return None


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    keys: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, float | int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": self.keys,
            "hitRate": self.hit_rate,
        }


def _key_of(key: CacheKey) -> str:
    return key.key if isinstance(key, RequestFingerprint) else str(key)


class ResponseCache:
    """Serialized response bodies keyed by request fingerprint.

    An entry is expired once ``now - stored_at >= ttl_seconds``. Expired
    entries are never returned by :meth:`get`; they are removed lazily on
    the next :meth:`get` for the same key or in bulk by :meth:`sweep`.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        check_period_seconds: float = DEFAULT_CHECK_PERIOD_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = float(ttl_seconds)
        self.check_period_seconds = float(check_period_seconds)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds

    def peek(self, key: CacheKey) -> CacheLookup:
        """Inspect ``key`` without touching counters or evicting."""

        with self._lock:
            entry = self._entries.get(_key_of(key))
            if entry is None:
                return CacheLookup(EntryState.ABSENT)
            if self._is_expired(entry, self._clock()):
                return CacheLookup(EntryState.EXPIRED, entry)
            return CacheLookup(EntryState.FRESH, entry)

    def lookup(self, key: CacheKey) -> CacheLookup:
        """Look up ``key``, counting a hit or miss and evicting it if expired."""

        cache_key = _key_of(key)
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is None:
                self._misses += 1
                return CacheLookup(EntryState.ABSENT)
            if not self._is_expired(entry, self._clock()):
                self._hits += 1
                return CacheLookup(EntryState.FRESH, entry)
            del self._entries[cache_key]
            self._misses += 1
            size = len(self._entries)
        observability.record_cache_size(size)
        return CacheLookup(EntryState.EXPIRED, entry)

    def get(self, key: CacheKey) -> Optional[str]:
        """Return the cached body for ``key``, or ``None`` if absent or expired."""
        return self.lookup(key).body

    def put(self, key: CacheKey, body: str) -> CacheEntry:
        entry = CacheEntry(key=_key_of(key), body=body, stored_at=self._clock())
        with self._lock:
            self._entries[entry.key] = entry
            size = len(self._entries)
        observability.record_cache_size(size)
        return entry

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
            size = len(self._entries)
        observability.record_cache_size(size)
        if expired:
            logger.debug(
                "Evicted expired cache entries",
                extra={"event": "dictionary.cache.sweep", "attributes": {"evicted": len(expired)}},
            )
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        observability.record_cache_size(0)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, keys=len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (RequestFingerprint, str)):
            return False
        return self.peek(key).state is EntryState.FRESH


__all__ = [
    "CacheEntry",
    "CacheLookup",
    "CacheStats",
    "DEFAULT_CHECK_PERIOD_SECONDS",
    "DEFAULT_TTL_SECONDS",
    "EntryState",
    "ResponseCache",
]
