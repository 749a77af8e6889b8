"""Simple memory-backed storage backend

This backend stores text values in memory as a flat `{<key>: <value>}` map.
It is used by the development server and by tests.
"""
from threading import RLock
from typing import Dict, List, Optional

from .base import StorageBackend


class MemoryStorage(StorageBackend):
    def __init__(self):
        self._lock = RLock()
        self._store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"MemoryStorage only stores text, got {type(value).__name__}")
        with self._lock:
            self._store[key] = value

    async def remove(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    async def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def configure(self, **options) -> None:
        # Nothing to configure for the in-memory backend. Accept options so
        # the factory can pass the same keyword set to every backend.
        return
