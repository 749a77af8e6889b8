"""Collection-oriented document store over a flat key/value backend.

Every collection lives under a single backend key (`key_prefix + name`) as
one serialized map of `record id -> record`. Records are opaque to the
store: it only requires that a record can be found again by the id it was
stored under.

Mutations are read-modify-write cycles over the whole blob. Within one
store instance each cycle runs under a per-collection `asyncio.Lock`, so
concurrent `upsert`/`remove` calls in this process do not stomp each other.
Writers in other processes (or other store instances over the same backend)
are not coordinated and remain last-writer-wins.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from rentals_lib.storage.base import StorageBackend
from rentals_lib.storage.serializer import JSONSerializer, Serializer
from rentals_lib.util import generate_id as _generate_id

from .cache import BlobCache
from .errors import StorageReadError

logger = logging.getLogger(__name__)

KEY_PREFIX = "hb_db_"


class CollectionStore:
    """Whole-collection document store with an explicit-invalidation read cache.

    Parameters
    - backend: asynchronous key/value backend holding the blobs.
    - serializer: codec turning a collection map into text (JSON by default).
    - key_prefix: namespace prefix for every collection key.
    - cache: blob cache instance; a private one is created when omitted.
    - protected_collections: collections whose records may only be removed
      when `allow_data_clear` is set.
    - allow_data_clear: enables destructive development operations.
    """

    def __init__(
        self,
        backend: StorageBackend,
        serializer: Optional[Serializer] = None,
        key_prefix: str = KEY_PREFIX,
        cache: Optional[BlobCache] = None,
        protected_collections: Iterable[str] = (),
        allow_data_clear: bool = False,
    ) -> None:
        self.backend = backend
        self.serializer = serializer or JSONSerializer()
        self.key_prefix = key_prefix
        self.cache = cache if cache is not None else BlobCache()
        self.protected_collections = frozenset(protected_collections)
        self.allow_data_clear = allow_data_clear
        self._locks: Dict[str, asyncio.Lock] = {}

    def storage_key(self, collection: str) -> str:
        return self.key_prefix + collection

    def _lock_for(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[collection] = lock
        return lock

    def _decode(self, storage_key: str, raw: Optional[str]) -> Optional[Dict[str, Any]]:
        if raw is None or raw == "":
            return None
        try:
            data = self.serializer.load(raw)
        except Exception as e:
            raise StorageReadError(storage_key, f"{type(e).__name__}: {e}") from e
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageReadError(storage_key, f"expected a mapping, got {type(data).__name__}")
        return data

    async def _read_collection(self, collection: str, use_cache: bool = True) -> Dict[str, Any]:
        """Load a collection map, degrading to an empty map on read failures."""
        if use_cache:
            cached = self.cache.get(collection)
            if cached is not None:
                return cached

        key = self.storage_key(collection)
        generation = self.cache.generation(collection)
        try:
            raw = await self.backend.get(key)
            data = self._decode(key, raw)
        except StorageReadError as e:
            logger.warning("Failed to read collection %s, treating as empty: %s", collection, e.reason)
            return {}
        except Exception as e:
            logger.warning("Backend read for collection %s failed, treating as empty: %s", collection, e)
            return {}

        data = data or {}
        # A write that invalidated the blob while this read was in flight wins
        self.cache.put(collection, data, generation=generation)
        return data

    async def _write_collection(self, collection: str, data: Dict[str, Any]) -> None:
        payload = self.serializer.dump(data)
        await self.backend.set(self.storage_key(collection), payload)

    async def get(self, collection: str, record_id: str) -> Optional[Any]:
        col = await self._read_collection(collection)
        return col.get(record_id)

    async def list(self, collection: str) -> List[Any]:
        col = await self._read_collection(collection)
        return list(col.values())

    async def items(self, collection: str) -> Dict[str, Any]:
        """The whole collection map (`id -> record`) as a private copy."""
        return await self._read_collection(collection)

    async def upsert(self, collection: str, record_id: str, record: Any) -> None:
        async with self._lock_for(collection):
            self.cache.invalidate(collection)
            try:
                col = await self._read_collection(collection, use_cache=False)
                col[record_id] = record
                await self._write_collection(collection, col)
            finally:
                self.cache.invalidate(collection)
        logger.debug("Upserted %s/%s", collection, record_id)

    async def remove(self, collection: str, record_id: str) -> bool:
        """Delete one record. Returns False when the removal was refused."""
        if collection in self.protected_collections and not self.allow_data_clear:
            logger.warning("Blocked attempt to delete %s from protected collection %s", record_id, collection)
            return False
        async with self._lock_for(collection):
            self.cache.invalidate(collection)
            try:
                col = await self._read_collection(collection, use_cache=False)
                if record_id in col:
                    del col[record_id]
                    await self._write_collection(collection, col)
            finally:
                self.cache.invalidate(collection)
        logger.debug("Removed %s/%s", collection, record_id)
        return True

    async def replace(self, collection: str, records: Dict[str, Any]) -> None:
        """Overwrite a whole collection with `records` (id -> record)."""
        async with self._lock_for(collection):
            self.cache.invalidate(collection)
            try:
                await self._write_collection(collection, dict(records))
            finally:
                self.cache.invalidate(collection)

    async def clear_collection(self, collection: str) -> None:
        async with self._lock_for(collection):
            self.cache.invalidate(collection)
            try:
                await self.backend.remove(self.storage_key(collection))
            finally:
                self.cache.invalidate(collection)
        logger.info("Cleared collection %s", collection)

    async def collections(self) -> List[str]:
        """Names of every collection currently persisted under the prefix."""
        prefix = self.key_prefix
        return [k[len(prefix):] for k in await self.backend.keys() if k.startswith(prefix)]

    async def clear_all(self) -> bool:
        """Delete every collection blob under the prefix (development only).

        Refused with a warning unless `allow_data_clear` is set. Returns True
        when the collections were cleared.
        """
        if not self.allow_data_clear:
            logger.warning("clear_all blocked: data clearing is disabled in this environment")
            return False
        if not self.key_prefix:
            raise ValueError("clear_all requires a non-empty key prefix")
        names = await self.collections()
        for name in names:
            await self.backend.remove(self.storage_key(name))
        self.cache.clear()
        logger.info("Cleared all collections: %d removed", len(names))
        return True

    async def clear_all_collections(self) -> bool:
        return await self.clear_all()

    async def clear_cache(self) -> None:
        self.cache.clear()

    def clear_collection_cache(self, collection: str) -> None:
        self.cache.invalidate(collection)

    async def read_raw(self, collection: str) -> Optional[Dict[str, Any]]:
        """Read a collection straight from the backend, bypassing the cache.

        Returns None when the blob does not exist. Raises `StorageReadError`
        when the blob exists but cannot be decoded.
        """
        key = self.storage_key(collection)
        raw = await self.backend.get(key)
        return self._decode(key, raw)

    async def raw_size(self, collection: str) -> int:
        """Length in characters of the serialized blob (0 when absent)."""
        raw = await self.backend.get(self.storage_key(collection))
        return len(raw) if raw else 0

    @staticmethod
    def generate_id(prefix: str = "rec") -> str:
        return _generate_id(prefix)
