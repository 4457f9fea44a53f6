"""Tests for the analytics TTL cache."""

from __future__ import annotations

from index_core.analytics.cache import MetricsCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMetricsCache:
    def test_set_and_get(self):
        cache = MetricsCache(ttl_seconds=10.0)
        cache.set("key", {"value": 42})
        assert cache.get("key") == {"value": 42}

    def test_missing_key(self):
        cache = MetricsCache()
        assert cache.get("nope") is None

    def test_default_ttl_is_five_minutes(self):
        clock = FakeClock()
        cache = MetricsCache(clock=clock)
        cache.set("key", "data")
        clock.now += 299
        assert cache.get("key") == "data"
        clock.now += 2
        assert cache.get("key") is None

    def test_expired_entry_is_dropped(self):
        clock = FakeClock()
        cache = MetricsCache(ttl_seconds=0.5, clock=clock)
        cache.set("key", "data")
        clock.now += 1.0
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_clear(self):
        cache = MetricsCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert cache.get("a") is None
        assert len(cache) == 0
