"""In-process caches used by the collection store and its callers.

Two shapes live here:

- `BlobCache` holds decoded collection blobs. It never expires entries on its
  own; the collection store invalidates a collection before and after every
  write to it.
- `TTLCache` holds the results of derived reads (for example "does user X
  have an approved application"). An entry older than its TTL is treated as
  absent and recomputed on the next read.

Invalidation is always explicit. Nothing propagates from one cache instance
to another, so code that mutates a collection must clear the derived caches
that depend on it.
"""
from __future__ import annotations
import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TTL = 5.0


@dataclass
class CacheEntry:
    key: str
    payload: Any
    inserted_at: float


class BlobCache:
    """Invalidate-on-demand cache of decoded collection blobs.

    Blobs are deep-copied on the way in and out so callers mutating a
    returned map never alter the cached copy.

    Every invalidation bumps a per-collection generation (and `clear` bumps a
    global epoch). A reader takes `generation(collection)` before going to
    the backend and hands it to `put`; the put is dropped when an
    invalidation happened in between, so a read that overlapped a write can
    never re-cache the blob the write replaced.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._clock = clock

    def generation(self, collection: str) -> Tuple[int, int]:
        with self._lock:
            return self._epoch, self._generations.get(collection, 0)

    def get(self, collection: str) -> Optional[dict]:
        with self._lock:
            entry = self._entries.get(collection)
            if entry is None:
                return None
            return copy.deepcopy(entry.payload)

    def put(self, collection: str, blob: dict, generation: Optional[Tuple[int, int]] = None) -> bool:
        """Cache `blob`; returns False when `generation` is no longer current."""
        with self._lock:
            if generation is not None and generation != (self._epoch, self._generations.get(collection, 0)):
                logger.debug("Dropped stale blob for %s", collection)
                return False
            self._entries[collection] = CacheEntry(collection, copy.deepcopy(blob), self._clock())
            return True

    def invalidate(self, collection: str) -> None:
        with self._lock:
            self._entries.pop(collection, None)
            self._generations[collection] = self._generations.get(collection, 0) + 1

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._epoch += 1
        if count:
            logger.debug("Cleared %d cached collection blobs", count)
        return count

    def __contains__(self, collection: str) -> bool:
        with self._lock:
            return collection in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TTLCache:
    """Time-boxed cache for derived query results.

    An entry inserted at time `t` is served for reads at `now < t + ttl` and
    recomputed for reads at `now >= t + ttl`. The clock is injectable so
    expiry can be tested without sleeping.
    """

    def __init__(self, ttl: float = DEFAULT_QUERY_TTL, clock: Callable[[], float] = time.monotonic, name: str = "query") -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _fresh(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.inserted_at) < self.ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached payload for `key` or `default` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if not self._fresh(entry):
                del self._entries[key]
                return default
            return entry.payload

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._fresh(entry)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key, value, self._clock())

    def age(self, key: str) -> Optional[float]:
        """Seconds since `key` was inserted, or None when never cached."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return self._clock() - entry.inserted_at

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for `key`, recomputing and refreshing it on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._fresh(entry):
                return entry.payload
        value = await compute()
        self.put(key, value)
        logger.debug("%s cache refreshed for %s", self.name, key)
        return value

    def clear(self, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry when `key` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
