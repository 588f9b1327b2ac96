"""Tests for the TTL response cache."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from dictionary_api.dictionary import EntryState, LookupRequest, ResponseCache


@pytest.fixture
def fingerprint():
    return LookupRequest.from_params("v2", "en", "hello").fingerprint


def test_entry_is_fresh_until_ttl_elapses(fake_clock, fingerprint):
    cache = ResponseCache(ttl_seconds=10, clock=fake_clock)
    cache.put(fingerprint, "[]")

    fake_clock.advance(9)
    assert cache.get(fingerprint) == "[]"

    fake_clock.advance(1)
    assert cache.peek(fingerprint).state is EntryState.EXPIRED
    assert cache.get(fingerprint) is None


def test_expired_entry_is_distinct_from_absent_and_evicted_on_read(fake_clock, fingerprint):
    cache = ResponseCache(ttl_seconds=5, clock=fake_clock)
    assert cache.peek(fingerprint).state is EntryState.ABSENT

    cache.put(fingerprint, "body")
    fake_clock.advance(5)

    lookup = cache.lookup(fingerprint)
    assert lookup.state is EntryState.EXPIRED
    assert lookup.body is None
    assert lookup.entry.body == "body"
    assert cache.peek(fingerprint).state is EntryState.ABSENT
    assert len(cache) == 0


def test_sweep_removes_only_expired_entries(fake_clock):
    cache = ResponseCache(ttl_seconds=60, check_period_seconds=30, clock=fake_clock)
    cache.put("v2:en:old:", "old")
    fake_clock.advance(30)
    cache.put("v2:en:new:", "new")
    fake_clock.advance(30)

    assert cache.sweep() == 1
    assert "v2:en:old:" not in cache
    assert "v2:en:new:" in cache
    assert cache.sweep() == 0


def test_put_replaces_and_restarts_ttl(fake_clock, fingerprint):
    cache = ResponseCache(ttl_seconds=10, clock=fake_clock)
    cache.put(fingerprint, "first")
    fake_clock.advance(8)
    cache.put(fingerprint, "second")
    fake_clock.advance(8)

    assert cache.get(fingerprint) == "second"
    assert len(cache) == 1


def test_stats_count_hits_misses_and_keys(fake_clock, fingerprint):
    cache = ResponseCache(ttl_seconds=10, clock=fake_clock)

    assert cache.get(fingerprint) is None
    cache.put(fingerprint, "body")
    assert cache.get(fingerprint) == "body"
    assert cache.get(fingerprint.key) == "body"
    cache.peek(fingerprint)

    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.keys) == (2, 1, 1)
    assert stats.to_dict()["hitRate"] == pytest.approx(2 / 3)


def test_empty_cache_has_zero_hit_rate():
    assert ResponseCache().stats().hit_rate == 0.0


def test_clear_resets_entries_and_counters(fingerprint):
    cache = ResponseCache()
    cache.put(fingerprint, "body")
    cache.get(fingerprint)

    cache.clear()

    assert cache.stats().to_dict() == {"hits": 0, "misses": 0, "keys": 0, "hitRate": 0.0}


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        ResponseCache(ttl_seconds=0)


def test_key_gauge_follows_puts_and_lazy_eviction(fake_clock, fingerprint):
    cache = ResponseCache(ttl_seconds=5, clock=fake_clock)
    other = LookupRequest.from_params("v2", "en", "world").fingerprint

    cache.put(fingerprint, "[]")
    cache.put(other, "[]")
    assert REGISTRY.get_sample_value("dictionary_api_cache_keys") == 2

    fake_clock.advance(5)
    assert cache.get(fingerprint) is None
    assert REGISTRY.get_sample_value("dictionary_api_cache_keys") == 1
