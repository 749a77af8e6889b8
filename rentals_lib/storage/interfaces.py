from typing import Protocol, List, Optional, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """Storage backend protocol mirroring `rentals_lib.storage.StorageBackend`.

    Implementations should follow the semantics documented on the abstract
    base class in `rentals_lib.storage.base` (None for missing keys, no-op
    removal of missing keys, errors raised on write failures).
    """

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def keys(self) -> List[str]: ...

    def configure(self, **options) -> None: ...
