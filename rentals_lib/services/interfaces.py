"""Protocols the composition layer depends on, gathered in one place.

Each Protocol is defined next to its implementation; this module only
re-exports them so `main.py` and the routers import from one spot.
"""

from rentals_lib.storage.interfaces import StorageProtocol
from rentals_lib.accounts.interfaces import AuthServiceProtocol
from rentals_lib.store.verification import VerifiableStore

__all__ = [
    "StorageProtocol",
    "AuthServiceProtocol",
    "VerifiableStore",
]
