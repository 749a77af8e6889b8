"""Cross-collection reconciliation between the identity store and `users`.

An account is one logical entity stored in two independent blobs: the
identity entry (credentials, keyed by email) and the `users` record (keyed
by id). Each blob has its own race window, so after a batch of verified
writes the seeder re-scans both for the accounts it expects and repairs
whichever half is missing:

- identity entry missing, or its password no longer verifies: rebuilt from
  the `users` record and the known password;
- `users` record missing: rebuilt from the identity entry.

Accounts missing from both sides cannot be repaired and are reported.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from rentals_lib.store.errors import DurabilityError
from rentals_lib.store.verification import QUICK_POLICY, RetryPolicy, Sleep, write_verified
from rentals_lib.util import normalize_email

from .auth import USERS_COLLECTION, AuthService, utc_now_iso
from .passwords import verify_password

logger = logging.getLogger(__name__)


@dataclass
class ExpectedAccount:
    email: str
    password: str
    role: str = 'owner'
    name: Optional[str] = None


@dataclass
class ReconcileReport:
    checked: int = 0
    repaired_identities: List[str] = field(default_factory=list)
    repaired_users: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unresolved


async def reconcile(
    auth: AuthService,
    expected: Iterable[ExpectedAccount],
    users_collection: str = USERS_COLLECTION,
    policy: RetryPolicy = QUICK_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> ReconcileReport:
    identity, store = auth.identity, auth.store
    report = ReconcileReport()

    identity.clear_cache()
    store.clear_collection_cache(users_collection)
    users = await store.list(users_collection)
    by_email = {normalize_email(u.get('email')): u for u in users if isinstance(u, dict)}

    for account in expected:
        email = normalize_email(account.email)
        report.checked += 1
        ident = await identity.get(email)
        user = by_email.get(email)

        if ident is None and user is None:
            logger.warning("Account %s is missing from both identity store and %s", email, users_collection)
            report.unresolved.append(email)
            continue

        try:
            if ident is None or not verify_password(account.password, ident.get('password_hash')):
                source = user if user is not None else ident
                record = auth.build_identity_record(source, account.password)
                record['updated_at'] = utc_now_iso()
                await identity.put_verified(record, policy=policy, sleep=sleep)
                report.repaired_identities.append(email)
                logger.info("Repaired identity entry for %s", email)
                ident = record

            if user is None:
                user_record = {k: v for k, v in ident.items() if k != 'password_hash'}
                await write_verified(store, users_collection, user_record['id'], user_record, policy=policy, sleep=sleep)
                report.repaired_users.append(email)
                logger.info("Repaired %s record for %s", users_collection, email)
        except DurabilityError as e:
            logger.error("Could not repair account %s: %s", email, e.message)
            report.unresolved.append(email)

    if report.repaired_identities or report.repaired_users:
        logger.info(
            "Reconciliation repaired %d identity entries and %d user records",
            len(report.repaired_identities), len(report.repaired_users),
        )
    return report
