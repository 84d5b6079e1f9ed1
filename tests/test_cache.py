"""CacheManager tests — soft-failure semantics, timeouts and counters."""
import json

import pytest

from app.cache import CacheManager
from tests.support import FakeRedis


@pytest.mark.asyncio
async def test_set_then_get_round_trip(cache_manager: CacheManager, fake_redis: FakeRedis):
    assert await cache_manager.set("k", {"a": 1}, ttl=30) is True
    assert fake_redis.ttls["k"] == 30
    assert await cache_manager.get("k") == {"a": 1}
    assert cache_manager.stats["hits"] == 1


@pytest.mark.asyncio
async def test_get_missing_key_is_a_miss(cache_manager: CacheManager):
    assert await cache_manager.get("absent") is None
    assert cache_manager.stats == {"hits": 0, "misses": 1, "errors": 0, "hit_rate": 0.0}


@pytest.mark.asyncio
async def test_empty_list_value_is_returned(cache_manager: CacheManager, fake_redis: FakeRedis):
    fake_redis.data["k"] = json.dumps([])
    assert await cache_manager.get("k") == []
    assert cache_manager.stats["hits"] == 1


@pytest.mark.asyncio
async def test_delete_removes_all_keys_in_one_call(cache_manager: CacheManager, fake_redis: FakeRedis):
    fake_redis.data.update({"a": "1", "b": "2", "c": "3"})
    assert await cache_manager.delete("a", "b") is True
    assert fake_redis.calls["delete"] == 1
    assert set(fake_redis.data) == {"c"}


@pytest.mark.asyncio
async def test_failures_are_soft():
    manager = CacheManager(client=FakeRedis(fail=True), timeout=0.2)
    assert await manager.get("k") is None
    assert await manager.set("k", [1]) is False
    assert await manager.delete("k") is False
    assert manager.stats["errors"] == 3
    assert manager.stats["misses"] == 1


@pytest.mark.asyncio
async def test_timeouts_are_soft():
    slow = FakeRedis(delay=1.0)
    manager = CacheManager(client=slow, timeout=0.05)
    assert await manager.get("k") is None
    assert await manager.set("k", {"x": 1}) is False
    assert manager.stats["errors"] == 2


@pytest.mark.asyncio
async def test_unserialisable_value_is_soft(cache_manager: CacheManager, fake_redis: FakeRedis):
    circular: list = []
    circular.append(circular)
    assert await cache_manager.set("k", circular) is False
    assert fake_redis.calls["set"] == 0
    assert cache_manager.stats["errors"] == 1


@pytest.mark.asyncio
async def test_disconnected_manager_never_raises():
    manager = CacheManager(url="redis://unused:1/0")
    assert manager.connected is False
    assert await manager.get("k") is None
    assert await manager.set("k", {}) is False
    assert await manager.delete("k") is False
    assert manager.stats["errors"] == 0


@pytest.mark.asyncio
async def test_disconnect_closes_client(cache_manager: CacheManager, fake_redis: FakeRedis):
    await cache_manager.disconnect()
    assert fake_redis.calls["aclose"] == 1
    assert cache_manager.connected is False


def test_reset_stats(cache_manager: CacheManager):
    cache_manager._hits = 3
    cache_manager.reset_stats()
    assert cache_manager.stats["hits"] == 0
