import asyncio

from rentals_lib.accounts import AuthService, ExpectedAccount, IdentityStore, USERS_COLLECTION, reconcile
from rentals_lib.accounts.passwords import verify_password
from rentals_lib.storage.memory_backend import MemoryStorage
from rentals_lib.store import CollectionStore, RetryPolicy
from tests.helpers import no_sleep

FAST = RetryPolicy(attempts=2, settle_delay=0, retry_delay=0)


def make_auth():
    backend = MemoryStorage()
    return AuthService(IdentityStore(backend), CollectionStore(backend), policy=FAST, sleep=no_sleep, password_iterations=1000)


def test_consistent_accounts_need_no_repair():
    auth = make_auth()

    async def run():
        await auth.sign_up('a@x.com', 'pw', 'owner')
        return await reconcile(auth, [ExpectedAccount('a@x.com', 'pw')], policy=FAST, sleep=no_sleep)

    report = asyncio.run(run())
    assert report.ok
    assert report.checked == 1
    assert report.repaired_identities == [] and report.repaired_users == []


def test_missing_identity_rebuilt_from_user_record():
    auth = make_auth()

    async def run():
        res = await auth.sign_up('a@x.com', 'pw', 'owner')
        await auth.identity.remove('a@x.com')
        report = await reconcile(auth, [ExpectedAccount('A@x.com', 'pw')], policy=FAST, sleep=no_sleep)
        return res.user.id, report, await auth.identity.get('a@x.com'), await auth.sign_in('a@x.com', 'pw')

    user_id, report, ident, signin = asyncio.run(run())
    assert report.repaired_identities == ['a@x.com']
    assert ident['id'] == user_id
    assert signin.success


def test_stale_password_is_rehashed():
    auth = make_auth()

    async def run():
        await auth.sign_up('a@x.com', 'old', 'owner')
        report = await reconcile(auth, [ExpectedAccount('a@x.com', 'new')], policy=FAST, sleep=no_sleep)
        return report, await auth.identity.get('a@x.com')

    report, ident = asyncio.run(run())
    assert report.repaired_identities == ['a@x.com']
    assert verify_password('new', ident['password_hash'])


def test_missing_user_record_rebuilt_from_identity():
    auth = make_auth()

    async def run():
        res = await auth.sign_up('a@x.com', 'pw', 'owner')
        auth.store.allow_data_clear = True
        await auth.store.remove(USERS_COLLECTION, res.user.id)
        report = await reconcile(auth, [ExpectedAccount('a@x.com', 'pw')], policy=FAST, sleep=no_sleep)
        return res.user.id, report, await auth.store.get(USERS_COLLECTION, res.user.id)

    user_id, report, user = asyncio.run(run())
    assert report.repaired_users == ['a@x.com']
    assert user['id'] == user_id
    assert 'password_hash' not in user


def test_account_missing_everywhere_is_unresolved():
    auth = make_auth()
    report = asyncio.run(reconcile(auth, [ExpectedAccount('ghost@x.com', 'pw')], policy=FAST, sleep=no_sleep))
    assert not report.ok
    assert report.unresolved == ['ghost@x.com']
