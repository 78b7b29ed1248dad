import time
from datetime import datetime

import fakeredis
import pytest
import redis

from app.core.cache import AnalyticsCache, range_key


class BrokenRedis:
    def get(self, *args, **kwargs):
        raise redis.ConnectionError("store down")

    setex = incr = get


@pytest.fixture
def cache():
    return AnalyticsCache(fakeredis.FakeRedis(decode_responses=True), ttl_seconds=300, namespace="test")


def test_range_key_is_deterministic():
    start = datetime(2024, 1, 1)
    assert range_key(start, None) == range_key(start, None)
    assert range_key(start, None) == "range:2024-01-01T00:00:00:open"
    assert range_key(None, None) != range_key(start, None)


def test_put_then_get(cache):
    assert cache.get("k") is None
    assert cache.put("k", {"totalViews": 3})
    assert cache.get("k") == {"totalViews": 3}


def test_invalidate_all_hides_existing_entries(cache):
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.invalidate_all()
    assert cache.get("a") is None
    assert cache.get("b") is None


def test_get_or_set_loads_once(cache):
    calls = []

    def loader():
        calls.append(1)
        return {"value": len(calls)}

    assert cache.get_or_set("k", loader) == {"value": 1}
    assert cache.get_or_set("k", loader) == {"value": 1}
    assert len(calls) == 1


def test_write_during_load_is_not_served_afterwards(cache):
    def loader():
        # A write lands while the rollup is being computed
        cache.invalidate_all()
        return {"stale": True}

    assert cache.get_or_set("k", loader) == {"stale": True}
    assert cache.get("k") is None
    assert cache.get_or_set("k", lambda: {"stale": False}) == {"stale": False}


def test_unreachable_store_behaves_as_miss():
    cache = AnalyticsCache(BrokenRedis())
    assert cache.get("k") is None
    assert not cache.put("k", 1)
    assert not cache.invalidate_all()
    assert cache.get_or_set("k", lambda: 42) == 42


def test_entries_carry_the_configured_ttl():
    r = fakeredis.FakeRedis(decode_responses=True)
    cache = AnalyticsCache(r, ttl_seconds=300, namespace="test")
    cache.put("default", 1)
    cache.put("short", 2, ttl=5)
    cache.get_or_set("loaded", lambda: 3)

    assert 0 < r.ttl("test:0:default") <= 300
    assert 0 < r.ttl("test:0:short") <= 5
    assert 0 < r.ttl("test:0:loaded") <= 300


def test_expired_entry_is_a_miss():
    r = fakeredis.FakeRedis(decode_responses=True)
    cache = AnalyticsCache(r, ttl_seconds=300, namespace="test")
    cache.put("k", {"totalViews": 1}, ttl=1)
    assert cache.get("k") == {"totalViews": 1}
    time.sleep(1.2)
    assert cache.get("k") is None
    assert cache.get_or_set("k", lambda: {"totalViews": 2}) == {"totalViews": 2}
