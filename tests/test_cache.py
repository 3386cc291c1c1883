"""
Tests for the TTL cache.
"""

from commercialx.utils.cache import TTLCache, epa_key, nhtsa_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestTTLCache:
    """Test expiry behaviour."""

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("k", {"make": "Ford"})
        clock.now += 59
        assert cache.get("k") == {"make": "Ford"}

    def test_expired_entry_dropped(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("k", 1)
        clock.now += 61
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_cleanup(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("old", 1)
        clock.now += 30
        cache.set("new", 2)
        clock.now += 40
        assert cache.cleanup() == 1
        assert cache.get("new") == 2

    def test_set_sweeps_after_interval(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock, cleanup_interval=600)
        for vin in ("A", "B", "C"):
            cache.set(vin, {})
        clock.now += 601
        cache.set("D", {})
        assert len(cache) == 1
        assert cache.get("D") == {}

    def test_set_does_not_sweep_before_interval(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock, cleanup_interval=600)
        cache.set("A", {})
        clock.now += 300
        cache.set("B", {})
        assert len(cache) == 2

    def test_sweep_interval_restarts(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock, cleanup_interval=600)
        clock.now += 600
        cache.set("A", {})
        clock.now += 100
        cache.set("B", {})
        assert len(cache) == 2

    def test_clear(self):
        cache = TTLCache(60)
        cache.set("k", 1)
        cache.clear()
        assert cache.get("k") is None

    def test_keys(self):
        assert nhtsa_key("VIN") == "nhtsa:VIN"
        assert epa_key(2024, "Ford", "F-550") == "epa:2024:Ford:F-550"
