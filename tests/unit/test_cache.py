import asyncio

import pytest

from rentals_lib.store.cache import BlobCache, DEFAULT_QUERY_TTL, TTLCache
from tests.helpers import FakeClock


def test_blob_cache_returns_private_copies():
    cache = BlobCache()
    blob = {'u1': {'id': 'u1', 'tags': []}}
    cache.put('users', blob)
    blob['u1']['tags'].append('mutated')

    got = cache.get('users')
    assert got == {'u1': {'id': 'u1', 'tags': []}}
    got['u2'] = {}
    assert 'u2' not in cache.get('users')


def test_blob_cache_invalidate_and_clear():
    cache = BlobCache()
    cache.put('a', {})
    cache.put('b', {})
    cache.invalidate('a')
    assert 'a' not in cache
    assert len(cache) == 1
    assert cache.clear() == 1
    assert cache.get('b') is None


def test_blob_cache_drops_put_from_before_invalidation():
    cache = BlobCache()
    token = cache.generation('a')
    cache.invalidate('a')
    assert cache.put('a', {'x': 1}, generation=token) is False
    assert cache.get('a') is None

    token = cache.generation('a')
    cache.clear()
    assert cache.put('a', {'x': 1}, generation=token) is False

    token = cache.generation('a')
    assert cache.put('a', {'x': 2}, generation=token) is True
    assert cache.get('a') == {'x': 2}


def test_ttl_entry_served_before_expiry_and_dropped_at_expiry():
    clock = FakeClock()
    cache = TTLCache(ttl=5.0, clock=clock)
    cache.put('k', 'v')

    clock.advance(4.75)
    assert cache.get('k') == 'v'
    assert 'k' in cache

    clock.advance(0.25)
    assert cache.get('k') is None
    assert 'k' not in cache


def test_ttl_get_or_compute_recomputes_at_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    calls = []

    async def compute():
        calls.append(clock())
        return len(calls)

    async def run():
        assert await cache.get_or_compute('q', compute) == 1
        clock.advance(DEFAULT_QUERY_TTL - 0.5)
        assert await cache.get_or_compute('q', compute) == 1
        clock.advance(0.5)
        assert await cache.get_or_compute('q', compute) == 2

    asyncio.run(run())
    assert len(calls) == 2


def test_ttl_age_and_clear():
    clock = FakeClock()
    cache = TTLCache(ttl=2.0, clock=clock)
    assert cache.age('k') is None
    cache.put('k', 1)
    cache.put('j', 2)
    clock.advance(1.5)
    assert cache.age('k') == pytest.approx(1.5)
    cache.clear('k')
    assert cache.get('k') is None
    assert cache.get('j') == 2
    cache.clear()
    assert cache.get('j', 'missing') == 'missing'


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        TTLCache(ttl=0)
