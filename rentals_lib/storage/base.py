"""Storage backend interface definitions.

Defines the StorageBackend abstract class: a flat, asynchronous key/value
primitive holding text values. Higher layers (the collection store and the
identity store) serialize whole collections into a single value per key.

Backends make no atomicity or read-your-writes promises beyond "usually
immediate"; callers that need a stronger guarantee use the verification
helpers in `rentals_lib.store.verification`.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional


class StorageBackend(ABC):
    """Abstract asynchronous key/value backend."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the text stored under `key` or None when absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value.

        May raise on serialization or quota problems.
        """

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove `key`. Removing a missing key is a no-op."""

    @abstractmethod
    async def keys(self) -> List[str]:
        """Return every key currently held by the backend."""

    def configure(self, **options) -> None:
        """Accept backend specific runtime options. Default is a no-op."""
        return
