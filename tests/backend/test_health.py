import asyncio

from rentals_lib.server.health import get_health
from rentals_lib.storage.memory_backend import MemoryStorage
from rentals_lib.store import CollectionStore


class BrokenStore:
    async def collections(self):
        raise OSError('disk gone')


def test_get_health_contains_fields():
    h = asyncio.run(get_health())
    assert isinstance(h, dict)
    assert h.get("status") == "ok"
    assert "start_time" in h
    assert isinstance(h["uptime_seconds"], int)
    assert "version" in h
    assert "collections" not in h


def test_health_checks_store():
    store = CollectionStore(MemoryStorage())
    asyncio.run(store.upsert('users', 'u1', {'id': 'u1'}))
    assert asyncio.run(get_health(store))["collections"] == 1
    degraded = asyncio.run(get_health(BrokenStore()))
    assert degraded["status"] == "degraded"
