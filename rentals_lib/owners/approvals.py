"""Owner application lookups with a short-lived result cache.

Answering "does user X have an approved application" means scanning the
whole `owner_applications` collection. Results are cached per user for a
few seconds (`DEFAULT_QUERY_TTL`). Writes made through this service clear
the affected entries; writes made elsewhere must call `clear()` themselves.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from rentals_lib.store.cache import DEFAULT_QUERY_TTL, TTLCache
from rentals_lib.store.collection_store import CollectionStore
from rentals_lib.store.verification import DEFAULT_POLICY, RetryPolicy, Sleep, write_verified

logger = logging.getLogger(__name__)

OWNER_APPLICATIONS = 'owner_applications'

STATUS_APPROVED = 'approved'
STATUS_PENDING = 'pending'
STATUS_REJECTED = 'rejected'


class OwnerApprovalService:
    def __init__(
        self,
        store: CollectionStore,
        ttl: float = DEFAULT_QUERY_TTL,
        clock: Callable[[], float] = time.monotonic,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.store = store
        self.cache = TTLCache(ttl=ttl, clock=clock, name='owner application')
        self.policy = policy
        self._sleep = sleep

    async def _latest_application(self, user_id: str) -> Optional[Dict[str, Any]]:
        apps = [
            a for a in await self.store.list(OWNER_APPLICATIONS)
            if isinstance(a, dict) and a.get('user_id') == user_id
        ]
        if not apps:
            return None
        # ISO timestamps sort chronologically; prefer an approved application
        approved = [a for a in apps if a.get('status') == STATUS_APPROVED]
        pool = approved or apps
        return max(pool, key=lambda a: a.get('created_at') or '')

    async def get_application(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the user's current application, or None."""
        return await self.cache.get_or_compute(
            f'application:{user_id}', lambda: self._latest_application(user_id)
        )

    async def is_approved_owner(self, user_id: str) -> bool:
        app = await self.get_application(user_id)
        return bool(app and app.get('status') == STATUS_APPROVED)

    async def submit(self, application: Dict[str, Any]) -> None:
        """Write an application through verification and drop cached lookups for its user."""
        await write_verified(
            self.store, OWNER_APPLICATIONS, application['id'], application,
            policy=self.policy, sleep=self._sleep,
        )
        self.clear(application.get('user_id'))
        logger.info("Owner application %s stored with status %s", application['id'], application.get('status'))

    def clear(self, user_id: Optional[str] = None) -> None:
        """Force recomputation for one user, or for everyone when `user_id` is None."""
        if user_id is None:
            self.cache.clear()
        else:
            self.cache.clear(f'application:{user_id}')

    def clear_cache(self) -> None:
        self.cache.clear()
