import asyncio

from rentals_lib.owners.approvals import OWNER_APPLICATIONS, OwnerApprovalService
from rentals_lib.storage.memory_backend import MemoryStorage
from rentals_lib.store import CollectionStore, RetryPolicy
from tests.helpers import FakeClock, no_sleep

FAST = RetryPolicy(attempts=1, settle_delay=0, retry_delay=0)


def make_service(clock):
    store = CollectionStore(MemoryStorage())
    return OwnerApprovalService(store, ttl=5.0, clock=clock, policy=FAST, sleep=no_sleep), store


def test_lookup_cached_until_ttl_then_recomputed():
    clock = FakeClock()
    svc, store = make_service(clock)

    async def run():
        assert await svc.is_approved_owner('u1') is False
        # Written behind the service's back: cached answer holds until the TTL
        await store.upsert(OWNER_APPLICATIONS, 'a1', {'id': 'a1', 'user_id': 'u1', 'status': 'approved', 'created_at': '2024-01-01'})
        clock.advance(4.5)
        before = await svc.is_approved_owner('u1')
        clock.advance(0.5)
        after = await svc.is_approved_owner('u1')
        return before, after

    before, after = asyncio.run(run())
    assert before is False
    assert after is True


def test_submit_clears_cached_lookup():
    clock = FakeClock()
    svc, _ = make_service(clock)

    async def run():
        assert await svc.get_application('u1') is None
        await svc.submit({'id': 'a1', 'user_id': 'u1', 'status': 'approved', 'created_at': '2024-01-01'})
        return await svc.is_approved_owner('u1')

    assert asyncio.run(run()) is True


def test_approved_application_preferred_over_newer_pending():
    clock = FakeClock()
    svc, store = make_service(clock)

    async def run():
        await store.upsert(OWNER_APPLICATIONS, 'a1', {'id': 'a1', 'user_id': 'u1', 'status': 'approved', 'created_at': '2024-01-01'})
        await store.upsert(OWNER_APPLICATIONS, 'a2', {'id': 'a2', 'user_id': 'u1', 'status': 'pending', 'created_at': '2024-06-01'})
        await store.upsert(OWNER_APPLICATIONS, 'b1', {'id': 'b1', 'user_id': 'u2', 'status': 'rejected', 'created_at': '2024-01-01'})
        await store.upsert(OWNER_APPLICATIONS, 'b2', {'id': 'b2', 'user_id': 'u2', 'status': 'pending', 'created_at': '2024-02-01'})
        return await svc.get_application('u1'), await svc.get_application('u2')

    u1, u2 = asyncio.run(run())
    assert u1['id'] == 'a1'
    assert u2['id'] == 'b2'


def test_clear_all_lookups():
    clock = FakeClock()
    svc, store = make_service(clock)

    async def run():
        await svc.get_application('u1')
        await store.upsert(OWNER_APPLICATIONS, 'a1', {'id': 'a1', 'user_id': 'u1', 'status': 'approved'})
        svc.clear()
        return await svc.is_approved_owner('u1')

    assert asyncio.run(run()) is True
