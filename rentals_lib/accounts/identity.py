"""Identity store: credentials keyed by normalized email.

The identity store is the credential source of truth. It follows the
collection store pattern but keeps every account in a single fixed blob
(`mock_users_database`) keyed by normalized email, separate from the
`users` collection. The two are logically one entity stored as two blobs,
which is why sign-up writes both through verification and the seeder runs
`reconcile` afterwards.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, List, Optional

from rentals_lib.storage.base import StorageBackend
from rentals_lib.storage.serializer import Serializer
from rentals_lib.store.collection_store import CollectionStore
from rentals_lib.store.verification import QUICK_POLICY, RetryPolicy, Sleep, write_verified
from rentals_lib.util import normalize_email

logger = logging.getLogger(__name__)

IDENTITY_KEY = "mock_users_database"


class IdentityStore:
    def __init__(
        self,
        backend: StorageBackend,
        serializer: Optional[Serializer] = None,
        storage_key: str = IDENTITY_KEY,
    ) -> None:
        # An empty prefix makes the collection name the backend key itself.
        self.store = CollectionStore(backend, serializer=serializer, key_prefix="")
        self.collection = storage_key

    async def get(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(self.collection, normalize_email(email))

    async def list(self) -> List[Dict[str, Any]]:
        return await self.store.list(self.collection)

    async def emails(self) -> List[str]:
        return [normalize_email(r.get("email")) for r in await self.list() if isinstance(r, dict)]

    async def put(self, record: Dict[str, Any]) -> str:
        """Store `record` under its normalized email and return that key."""
        email = normalize_email(record.get("email"))
        if not email:
            raise ValueError("identity records require an email")
        record = dict(record, email=email)
        await self.store.upsert(self.collection, email, record)
        return email

    async def put_verified(
        self,
        record: Dict[str, Any],
        policy: RetryPolicy = QUICK_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> str:
        """Store `record` and confirm it is readable from the backend."""
        email = normalize_email(record.get("email"))
        if not email:
            raise ValueError("identity records require an email")
        record = dict(record, email=email)
        await write_verified(self.store, self.collection, email, record, policy=policy, sleep=sleep)
        return email

    async def remove(self, email: str) -> None:
        await self.store.remove(self.collection, normalize_email(email))

    async def clear(self) -> None:
        await self.store.clear_collection(self.collection)

    async def read_raw(self) -> Optional[Dict[str, Any]]:
        return await self.store.read_raw(self.collection)

    def clear_cache(self) -> None:
        self.store.clear_collection_cache(self.collection)
