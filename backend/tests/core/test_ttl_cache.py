"""TTL Cache tests — expiry and bounded size."""

from shipyard.core.ttl_cache import TTLCache


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_hit_within_ttl_then_expiry():
    clock = _Clock()
    cache = TTLCache(ttl_seconds=60, clock=clock)
    cache.set("k", {"v": 1})
    clock.now = 59.9
    assert cache.get("k") == {"v": 1}
    clock.now = 60.0
    assert cache.get("k") is None
    assert len(cache) == 0


def test_evicts_oldest_when_full():
    clock = _Clock()
    cache = TTLCache(ttl_seconds=60, max_size=2, clock=clock)
    cache.set("a", 1)
    clock.now = 1
    cache.set("b", 2)
    clock.now = 2
    cache.set("c", 3)
    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_overwrite_does_not_evict():
    cache = TTLCache(max_size=1)
    cache.set("a", 1)
    cache.set("a", 2)
    assert cache.get("a") == 2


def test_clear():
    cache = TTLCache()
    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0
