"""Tests for the in-memory response cache."""

from __future__ import annotations

import pytest

from padel_client.cache import (
    CacheEntry,
    ResponseCache,
    ResponseCacheConfig,
    cache_key,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _cache(**kw) -> ResponseCache:
    return ResponseCache(ResponseCacheConfig(**kw))


# ---------------------------------------------------------------------------
# Config / key
# ---------------------------------------------------------------------------


class TestConfig:
    def test_defaults(self) -> None:
        assert ResponseCacheConfig().default_ttl == 300.0

    def test_frozen(self) -> None:
        cfg = ResponseCacheConfig()
        with pytest.raises(AttributeError):
            cfg.default_ttl = 1.0  # type: ignore[misc]


class TestCacheKey:
    def test_endpoint_and_compact_json(self) -> None:
        key = cache_key("/analysis/top-rackets", {"attribute": "Power", "limit": 3})
        assert key == '/analysis/top-rackets:{"attribute":"Power","limit":3}'

    def test_no_params(self) -> None:
        assert cache_key("/analysis/rackets") == "/analysis/rackets:{}"

    def test_param_order_is_part_of_key(self) -> None:
        assert cache_key("/x", {"a": 1, "b": 2}) != cache_key("/x", {"b": 2, "a": 1})


# ---------------------------------------------------------------------------
# Set / get
# ---------------------------------------------------------------------------


class TestSetGet:
    def test_set_and_get(self) -> None:
        c = _cache()
        c.set("k", {"rackets": []}, now=100.0)
        assert c.get("k", now=100.0) == {"rackets": []}

    def test_get_missing(self) -> None:
        assert _cache().get("nope", now=100.0) is None

    def test_overwrite(self) -> None:
        c = _cache()
        c.set("k", 1, now=100.0)
        c.set("k", 2, now=101.0)
        assert c.get("k", now=101.0) == 2
        assert c.entry_count() == 1

    def test_remove(self) -> None:
        c = _cache()
        c.set("k", 1, now=100.0)
        assert c.remove("k") is True
        assert c.remove("k") is False
        assert c.get("k", now=100.0) is None

    def test_clear(self) -> None:
        c = _cache()
        c.set("a", 1, now=100.0)
        c.set("b", 2, now=100.0)
        c.clear()
        assert c.entry_count() == 0
        assert c.get("a", now=100.0) is None
        assert c.get("b", now=100.0) is None


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_default_ttl(self) -> None:
        c = _cache(default_ttl=60.0)
        c.set("k", 1, now=100.0)
        assert c.get("k", now=159.9) == 1
        assert c.get("k", now=160.0) is None

    def test_never_returned_at_expiry_instant(self) -> None:
        c = _cache()
        c.set("k", 1, ttl=10.0, now=100.0)
        assert c.has("k", now=109.99) is True
        assert c.has("k", now=110.0) is False
        assert c.get("k", now=110.0) is None

    def test_expired_entry_is_dropped_on_lookup(self) -> None:
        c = _cache()
        c.set("k", 1, ttl=10.0, now=100.0)
        assert c.entry_count() == 1
        c.get("k", now=200.0)
        assert c.entry_count() == 0
        assert c.keys() == []

    def test_injected_clock(self) -> None:
        clock = _Clock(1000.0)
        c = ResponseCache(ResponseCacheConfig(default_ttl=5.0), clock=clock)
        c.set("k", "v")
        assert c.get("k") == "v"
        clock.now = 1005.0
        assert c.get("k") is None

    def test_entry_is_expired(self) -> None:
        entry = CacheEntry(key="k", value=1, expires_at=50.0)
        assert entry.is_expired(49.0) is False
        assert entry.is_expired(50.0) is True


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class TestStats:
    def test_counts_hits_misses_expirations(self) -> None:
        c = _cache()
        c.set("k", 1, ttl=10.0, now=100.0)
        c.get("k", now=101.0)
        c.get("missing", now=101.0)
        c.get("k", now=200.0)

        stats = c.stats()
        assert stats.entries == 0
        assert stats.hits == 1
        assert stats.misses == 2
        assert stats.expirations == 1
