"""Collection store, caches and write verification."""
from .cache import BlobCache, CacheEntry, TTLCache, DEFAULT_QUERY_TTL
from .collection_store import CollectionStore, KEY_PREFIX
from .errors import (
    StoreError,
    StorageReadError,
    RetryExhausted,
    DurabilityError,
    BatchWriteError,
    StorageFullError,
)
from .verification import (
    RetryPolicy,
    DEFAULT_POLICY,
    QUICK_POLICY,
    retry,
    check_persisted,
    write_verified,
    write_verified_batch,
)

__all__ = [
    "BlobCache",
    "CacheEntry",
    "TTLCache",
    "DEFAULT_QUERY_TTL",
    "CollectionStore",
    "KEY_PREFIX",
    "StoreError",
    "StorageReadError",
    "RetryExhausted",
    "DurabilityError",
    "BatchWriteError",
    "StorageFullError",
    "RetryPolicy",
    "DEFAULT_POLICY",
    "QUICK_POLICY",
    "retry",
    "check_persisted",
    "write_verified",
    "write_verified_batch",
]
