from __future__ import annotations

from datetime import datetime, timedelta

from employee_dashboard.cache.tag_cache import CacheTag, TaggedCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 1, 9, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TaggedCache(clock=clock)
    cache.set("k", {"v": 1}, ttl=60, tags=[CacheTag.TASKS])

    clock.advance(60)
    assert cache.get("k") == {"v": 1}
    clock.advance(1)
    assert cache.get("k") is None


def test_invalidate_drops_only_tagged_entries():
    cache = TaggedCache()
    cache.set("dash", 1, ttl=60, tags=[CacheTag.DASHBOARD, CacheTag.TASKS])
    cache.set("emp", 2, ttl=60, tags=[CacheTag.EMPLOYEES])

    assert cache.invalidate(CacheTag.TASKS) == 1
    assert cache.get("dash") is None
    assert cache.get("emp") == 2
    # the other tag no longer points at the dropped key
    assert cache.invalidate(CacheTag.DASHBOARD) == 0


def test_get_or_set_calls_factory_once():
    cache = TaggedCache()
    calls = []

    def factory():
        calls.append(1)
        return {"n": len(calls)}

    assert cache.get_or_set("k", factory, ttl=60, tags=[CacheTag.REPORTS]) == {"n": 1}
    assert cache.get_or_set("k", factory, ttl=60, tags=[CacheTag.REPORTS]) == {"n": 1}
    assert len(calls) == 1

    cache.invalidate(CacheTag.REPORTS)
    assert cache.get_or_set("k", factory, ttl=60, tags=[CacheTag.REPORTS]) == {"n": 2}


def test_delete_and_clear():
    cache = TaggedCache()
    cache.set("a", 1, tags=[CacheTag.SETTINGS])
    cache.set("b", 2)
    cache.delete("a")
    assert cache.get("a") is None
    cache.clear()
    assert cache.get("b") is None


def test_writes_sweep_expired_day_keys():
    clock = FakeClock()
    cache = TaggedCache(clock=clock)

    for day in range(500):
        cache.set(f"dashboard:stats:all:{day}", {"day": day}, ttl=60, tags=[CacheTag.DASHBOARD])
        clock.advance(24 * 3600)

    assert len(cache) == 1
    assert cache._keys_by_tag == {"dashboard": {"dashboard:stats:all:499"}}
