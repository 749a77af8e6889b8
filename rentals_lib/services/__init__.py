"""Services package: DI container and cross-cutting interfaces."""
from .container import ServiceContainer
from .interfaces import (
    AuthServiceProtocol,
    StorageProtocol,
    VerifiableStore,
)

__all__ = [
    "ServiceContainer",
    "AuthServiceProtocol",
    "StorageProtocol",
    "VerifiableStore",
]
