"""
Property-based tests for the local, distributed and two-tier caches and the
index generation counter.
"""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from listing_search.models import CachedSearchPage
from listing_search.services.cache import (
    IndexGeneration,
    LocalCache,
    RedisCache,
    TwoTierCache,
)

from fakes import FakeRedis, make_listing


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_page(total: int = 1) -> CachedSearchPage:
    return CachedSearchPage(listings=[make_listing("1")], total=total)


keys = st.text(alphabet="abcdefgh", min_size=1, max_size=3)


# LocalCache

@given(ops=st.lists(st.tuples(keys, st.integers()), min_size=1, max_size=50),
       max_size=st.integers(min_value=1, max_value=8))
@settings(max_examples=100)
def test_local_cache_never_exceeds_capacity(ops, max_size):
    """For any sequence of writes, the number of live entries stays within max_size."""
    cache = LocalCache(max_size=max_size, clock=FakeClock())
    for key, value in ops:
        cache.set(key, value, 60)
        assert len(cache) <= max_size

    # The most recent write is always retrievable
    last_key, last_value = ops[-1]
    assert cache.get(last_key) == (last_value, True)


@given(ttl=st.floats(min_value=0.1, max_value=1000), elapsed=st.floats(min_value=0, max_value=2000))
@settings(max_examples=100)
def test_local_cache_entry_expires_after_ttl(ttl, elapsed):
    """An entry is a hit strictly before its TTL elapses and a miss afterwards."""
    clock = FakeClock()
    cache = LocalCache(clock=clock)
    cache.set("k", "v", ttl)

    clock.now += elapsed
    value, found = cache.get("k")

    if elapsed < ttl:
        assert found and value == "v"
    else:
        assert not found and value is None
        assert len(cache) == 0


def test_local_cache_evicts_least_recently_used():
    cache = LocalCache(max_size=2, clock=FakeClock())
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)
    cache.get("a")
    cache.set("c", 3, 60)

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_local_cache_overwrite_and_delete():
    cache = LocalCache(clock=FakeClock())
    cache.set("k", 1, 60)
    cache.set("k", 2, 60)
    assert cache.get("k") == (2, True)
    assert cache.delete("k") is True
    assert cache.delete("k") is False
    assert cache.get("k") == (None, False)


def test_local_cache_rejects_zero_capacity():
    with pytest.raises(ValueError):
        LocalCache(max_size=0)


# RedisCache

@pytest.mark.asyncio
async def test_redis_cache_round_trip_and_counter():
    client = FakeRedis()
    cache = RedisCache(client)

    assert await cache.get("missing") is None
    await cache.set("k", "value", 900)
    assert await cache.get("k") == "value"
    assert client.ttls["k"] == 900

    assert await cache.get_int("counter") == 0
    assert await cache.incr("counter") == 1
    assert await cache.get_int("counter") == 1

    assert await cache.delete("k") is True
    assert await cache.delete("k") is False

    await cache.close()
    assert client.closed


# TwoTierCache

@pytest.mark.asyncio
async def test_two_tier_set_writes_both_tiers():
    client = FakeRedis()
    cache = TwoTierCache(LocalCache(), RedisCache(client), CachedSearchPage,
                         local_ttl=300, distributed_ttl=900)
    page = make_page(total=3)

    await cache.set("search:k", page)

    assert cache.local.get("search:k") == (page, True)
    assert CachedSearchPage.model_validate_json(client.store["search:k"]) == page
    assert client.ttls["search:k"] == 900


@pytest.mark.asyncio
async def test_two_tier_local_hit_makes_no_network_call():
    client = FakeRedis()
    cache = TwoTierCache(LocalCache(), RedisCache(client), CachedSearchPage)
    page = make_page()
    await cache.set("k", page)
    calls_before = client.calls

    value, found = await cache.get("k")

    assert found and value == page
    assert client.calls == calls_before


@pytest.mark.asyncio
async def test_two_tier_redis_hit_repopulates_local():
    client = FakeRedis()
    page = make_page(total=5)
    client.store["k"] = page.model_dump_json()
    cache = TwoTierCache(LocalCache(), RedisCache(client), CachedSearchPage)

    value, found = await cache.get("k")

    assert found and value == page
    assert cache.local.get("k")[1] is True


@pytest.mark.asyncio
async def test_two_tier_redis_failure_degrades_to_miss():
    client = FakeRedis()
    client.fail = True
    cache = TwoTierCache(LocalCache(), RedisCache(client), CachedSearchPage)
    page = make_page()

    assert await cache.get("k") == (None, False)

    # Writes still land locally and never raise
    await cache.set("k", page)
    assert await cache.get("k") == (page, True)

    await cache.delete("k")
    assert await cache.get("k") == (None, False)


@pytest.mark.asyncio
async def test_two_tier_undecodable_entry_is_a_miss():
    client = FakeRedis()
    client.store["k"] = "{not json"
    cache = TwoTierCache(LocalCache(), RedisCache(client), CachedSearchPage)

    assert await cache.get("k") == (None, False)


@pytest.mark.asyncio
async def test_two_tier_delete_missing_key_is_not_an_error():
    cache = TwoTierCache(LocalCache(), RedisCache(FakeRedis()), CachedSearchPage)
    await cache.delete("never-set")


@pytest.mark.asyncio
async def test_two_tier_without_remote_is_local_only():
    cache = TwoTierCache(LocalCache(), None, CachedSearchPage)
    page = make_page()
    assert await cache.get("k") == (None, False)
    await cache.set("k", page)
    assert await cache.get("k") == (page, True)


# IndexGeneration

@given(bumps=st.integers(min_value=0, max_value=20))
@settings(max_examples=50, deadline=None)
def test_generation_strictly_increases_on_bump(bumps):
    """Every bump yields a generation greater than any previously observed."""
    generation = IndexGeneration(RedisCache(FakeRedis()))

    async def run():
        seen = [await generation.current()]
        for _ in range(bumps):
            seen.append(await generation.bump())
            seen.append(await generation.current())
        return seen

    seen = asyncio.run(run())
    for earlier, later in zip(seen, seen[1:]):
        assert later >= earlier
    assert seen[-1] == bumps


@pytest.mark.asyncio
async def test_generation_shared_between_instances():
    client = FakeRedis()
    writer = IndexGeneration(RedisCache(client))
    reader = IndexGeneration(RedisCache(client))

    await writer.bump()
    await writer.bump()

    assert await reader.current() == 2


@pytest.mark.asyncio
async def test_generation_never_moves_backwards_when_redis_fails():
    client = FakeRedis()
    generation = IndexGeneration(RedisCache(client), refresh_seconds=0)
    await generation.bump()
    await generation.bump()

    client.fail = True
    assert await generation.current() == 2
    assert await generation.bump() == 3

    # A flushed Redis moves the mirror forward, never back
    client.fail = False
    client.store.clear()
    assert await generation.current() == 4


@pytest.mark.asyncio
async def test_generation_notices_bumps_after_redis_flush():
    client = FakeRedis()
    node_a = IndexGeneration(RedisCache(client), refresh_seconds=0)
    node_b = IndexGeneration(RedisCache(client), refresh_seconds=0)
    for _ in range(3):
        await node_a.bump()
    assert await node_b.current() == 3

    client.store.clear()
    await node_b.bump()

    # The shared counter restarted at 1, below node A's mirror
    assert await node_a.current() > 3


@pytest.mark.asyncio
async def test_generation_rereads_shared_value_only_after_interval():
    client = FakeRedis()
    clock = FakeClock()
    writer = IndexGeneration(RedisCache(client))
    reader = IndexGeneration(RedisCache(client), refresh_seconds=2.0, clock=clock)

    assert await reader.current() == 0
    calls_before = client.calls
    await writer.bump()
    calls_after_bump = client.calls

    assert await reader.current() == 0
    assert client.calls == calls_after_bump

    clock.now += 2.0
    assert await reader.current() == 1
    assert client.calls == calls_after_bump + 1
    assert calls_after_bump == calls_before + 1


@pytest.mark.asyncio
async def test_generation_without_remote_is_local():
    generation = IndexGeneration()
    assert await generation.current() == 0
    assert await generation.bump() == 1
    assert generation.local_value == 1
