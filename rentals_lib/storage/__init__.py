"""Storage abstraction package for the rentals store."""
from pathlib import Path

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .memory_backend import MemoryStorage
from .serializer import (
    Serializer,
    JSONSerializer,
    YAMLSerializer,
    EncryptedSerializer,
    get_serializer,
)


def create_storage(backend: str = "file", data_dir: str | Path = "data", file_extension: str = ".json") -> StorageBackend:
    """Create a storage backend by name ('file' or 'memory')."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorageBackend(data_dir=Path(data_dir) / "store", file_extension=file_extension)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "StorageBackend",
    "FileStorageBackend",
    "MemoryStorage",
    "Serializer",
    "JSONSerializer",
    "YAMLSerializer",
    "EncryptedSerializer",
    "get_serializer",
    "create_storage",
]
