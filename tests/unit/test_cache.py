"""
Unit tests for baseline caches.
"""

from src.anomaly import cache as cache_module
from src.anomaly.cache import InMemoryTTLCache, RedisBaselineCache


class _FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl


def test_ttl_cache_roundtrip():
    cache = InMemoryTTLCache()
    cache.set_with_ttl("k", b"v", 60)
    assert cache.get("k") == b"v"
    assert cache.get("missing") is None


def test_ttl_cache_expiry(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: now[0])
    cache = InMemoryTTLCache()
    cache.set_with_ttl("k", b"v", 10)

    now[0] += 11
    assert cache.get("k") is None
    assert len(cache) == 0


def test_ttl_cache_evicts_least_recent():
    cache = InMemoryTTLCache(maxsize=2)
    cache.set_with_ttl("a", b"1", 60)
    cache.set_with_ttl("b", b"2", 60)
    cache.get("a")
    cache.set_with_ttl("c", b"3", 60)

    assert cache.get("b") is None
    assert cache.get("a") == b"1"
    assert cache.get("c") == b"3"


def test_redis_cache_uses_setex():
    client = _FakeRedis()
    cache = RedisBaselineCache(client)
    cache.set_with_ttl("baseline:REG-001", b"{}", 3600)

    assert client.ttls["baseline:REG-001"] == 3600
    assert cache.get("baseline:REG-001") == b"{}"
