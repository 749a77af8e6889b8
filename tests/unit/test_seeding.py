import asyncio
import random

import pytest

from rentals_lib.accounts import AuthService, IdentityStore, USERS_COLLECTION
from rentals_lib.owners.approvals import OWNER_APPLICATIONS, OwnerApprovalService
from rentals_lib.owners.seeding import (
    OWNER_PROFILES,
    OWNERS,
    PUBLISHED_LISTINGS,
    OwnerSeeder,
    owner_credentials,
    seed_phone,
)
from rentals_lib.storage.memory_backend import MemoryStorage
from rentals_lib.store import CollectionStore, KEY_PREFIX, RetryPolicy
from tests.helpers import FlakyBackend, no_sleep

FAST = RetryPolicy(attempts=2, settle_delay=0, retry_delay=0)


def make_seeder(backend=None):
    backend = backend or MemoryStorage()
    store = CollectionStore(backend)
    auth = AuthService(IdentityStore(backend), store, policy=FAST, sleep=no_sleep, password_iterations=1000)
    approvals = OwnerApprovalService(store, policy=FAST, sleep=no_sleep)
    return OwnerSeeder(auth, approvals, policy=FAST, sleep=no_sleep, rng=random.Random(7), pause=0)


def test_owner_credentials_are_deterministic():
    creds = owner_credentials(['Daro', 'Piapi'], owners_per_barangay=2, password='pw')
    assert [c.email for c in creds] == [
        'rozel@gmail.com', 'maria@gmail.com', 'rozel11@gmail.com', 'maria12@gmail.com',
    ]
    assert [c.barangay for c in creds] == ['Daro', 'Daro', 'Piapi', 'Piapi']
    assert creds[0].phone == seed_phone(1) == '+639101000001'


def test_owner_credentials_limit():
    with pytest.raises(ValueError):
        owner_credentials(owners_per_barangay=11)


def test_seed_creates_owners_with_applications_and_listings():
    seeder = make_seeder()
    report = asyncio.run(seeder.seed(['Daro'], owners_per_barangay=2, password='pw'))
    store = seeder.store

    assert report.success, report.errors
    assert report.total_owners == 2
    assert report.total_properties == 4
    assert report.reconciliation.ok

    async def collect():
        return {
            col: await store.list(col)
            for col in (USERS_COLLECTION, OWNERS, OWNER_PROFILES, OWNER_APPLICATIONS, PUBLISHED_LISTINGS)
        }

    data = asyncio.run(collect())
    assert len(data[USERS_COLLECTION]) == 2
    assert all(u['role'] == 'owner' for u in data[USERS_COLLECTION])
    assert len(data[OWNERS]) == 2 and len(data[OWNER_PROFILES]) == 2
    assert {a['status'] for a in data[OWNER_APPLICATIONS]} == {'approved'}
    assert len(data[PUBLISHED_LISTINGS]) == 4
    listing = data[PUBLISHED_LISTINGS][0]
    assert listing['barangay'] == 'DARO'
    assert listing['status'] == 'published'
    assert 5000 <= listing['monthly_rent'] < 20000

    signin = asyncio.run(seeder.auth.sign_in('rozel@gmail.com', 'pw'))
    assert signin.success and signin.user.role == 'owner'


def test_seed_twice_reports_duplicates():
    seeder = make_seeder()
    asyncio.run(seeder.seed(['Daro'], owners_per_barangay=1, password='pw'))
    report = asyncio.run(seeder.seed(['Daro'], owners_per_barangay=1, password='pw'))
    assert not report.success
    assert report.total_owners == 0
    assert 'already exists' in report.errors[0]


def test_failed_listing_keeps_earlier_records():
    backend = FlakyBackend(drop_key=KEY_PREFIX + PUBLISHED_LISTINGS, drop_writes=100)
    seeder = make_seeder(backend)
    report = asyncio.run(seeder.seed(['Daro'], owners_per_barangay=1, password='pw'))

    assert not report.success
    assert report.total_owners == 0
    assert 'published_listings' in report.errors[0]

    async def check():
        return (
            len(await seeder.store.list(USERS_COLLECTION)),
            len(await seeder.store.list(OWNERS)),
            len(await seeder.store.list(PUBLISHED_LISTINGS)),
        )

    # No rollback: the account and profile that verified stay in place
    assert asyncio.run(check()) == (1, 1, 0)


def test_seed_ignores_non_mapping_records():
    seeder = make_seeder()

    async def run():
        await seeder.store.upsert(PUBLISHED_LISTINGS, 'stray', 'plain')
        await seeder.store.upsert(USERS_COLLECTION, 'junk', 42)
        return await seeder.seed(['Daro'], owners_per_barangay=1, password='pw')

    report = asyncio.run(run())
    assert report.success, report.errors
    assert report.total_owners == 1
    assert report.total_properties == 2
