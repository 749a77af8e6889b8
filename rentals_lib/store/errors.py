"""Exceptions raised by the collection store and its write-verification helpers.

Each error carries a machine-readable `error_code` and a `context` dict so
the HTTP layer and the seeding report can surface it without parsing
messages.
"""
from typing import Any, List, Optional, Tuple


class StoreError(Exception):
    """Base exception for store-related errors."""

    def __init__(self, message: str, error_code: str = "store_error", context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class StorageReadError(StoreError):
    """A collection blob could not be read or decoded.

    The collection store catches this internally and degrades to an empty
    collection; it is raised only by helpers that must distinguish a corrupt
    blob from an empty one (e.g. raw read-back during verification).
    """

    def __init__(self, storage_key: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to read blob '{storage_key}': {reason}",
            error_code="storage_read_failed",
            context={"storage_key": storage_key, "reason": reason},
        )
        self.storage_key = storage_key
        self.reason = reason


class RetryExhausted(StoreError):
    """Raised by the bounded-retry combinator when every attempt failed."""

    def __init__(self, operation: str, attempts: int, last_error: Optional[BaseException]) -> None:
        reason = str(last_error) if last_error else "unknown error"
        super().__init__(
            message=f"{operation} failed after {attempts} attempts: {reason}",
            error_code="retry_exhausted",
            context={"operation": operation, "attempts": attempts},
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class DurabilityError(StoreError):
    """A record could not be verified as durably persisted.

    Callers must abort any dependent writes when they see this error.
    """

    def __init__(self, collection: str, record_id: str, attempts: int, cause: Optional[BaseException] = None) -> None:
        reason = str(cause) if cause else "read-back did not match"
        super().__init__(
            message=(
                f"Failed to durably persist record '{record_id}' in collection "
                f"'{collection}' after {attempts} attempts: {reason}"
            ),
            error_code="durability_failed",
            context={"collection": collection, "record_id": record_id, "attempts": attempts},
        )
        self.collection = collection
        self.record_id = record_id
        self.attempts = attempts
        self.cause = cause


class BatchWriteError(StoreError):
    """A verified batch stopped at a record that failed verification.

    Records listed in `completed` were verified before the failure and are
    left in place; there is no rollback.
    """

    def __init__(self, failed: DurabilityError, completed: List[Tuple[str, str]]) -> None:
        super().__init__(
            message=f"Batch write stopped after {len(completed)} verified records: {failed.message}",
            error_code="batch_write_failed",
            context={
                "collection": failed.collection,
                "record_id": failed.record_id,
                "completed": [f"{c}/{i}" for c, i in completed],
            },
        )
        self.failed = failed
        self.completed = completed


class StorageFullError(StoreError):
    """A write was refused because it would not fit in the storage budget."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            message=f"Insufficient storage space. Available: {available} bytes, Required: {required} bytes",
            error_code="storage_full",
            context={"available": available, "required": required},
        )
        self.available = available
        self.required = required
