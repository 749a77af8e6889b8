"""Write verification for a backend without transactions.

The collection store cannot say whether a write actually landed, and it
offers no transaction across collections. Callers that must not proceed
until a record is durably readable (sign-up, seeding owners with their
listings) use `write_verified`, which repeats

    clear cache -> upsert -> settle -> clear cache -> read back twice

until both read-backs agree or the attempt ceiling is reached. The second
read-back goes straight to the backend blob, so a cached copy can never
mask a missing write.

A batch that fails half way keeps the records that were already verified.
There is no rollback; `BatchWriteError.completed` lists what landed.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Protocol, Tuple, TypeVar

from .errors import BatchWriteError, DurabilityError, RetryExhausted, StoreError

logger = logging.getLogger(__name__)

R = TypeVar("R")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and delays (seconds) for verified writes."""

    attempts: int = 5
    settle_delay: float = 0.2
    retry_delay: float = 0.3

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.settle_delay < 0 or self.retry_delay < 0:
            raise ValueError("delays must not be negative")


DEFAULT_POLICY = RetryPolicy()
# Lighter policy used for identity/profile records written right after sign-up
QUICK_POLICY = RetryPolicy(attempts=3, settle_delay=0.1, retry_delay=0.1)


class VerifiableStore(Protocol):
    def clear_collection_cache(self, collection: str) -> None: ...

    async def upsert(self, collection: str, record_id: str, record: Any) -> None: ...

    async def get(self, collection: str, record_id: str) -> Optional[Any]: ...

    async def read_raw(self, collection: str) -> Optional[dict]: ...


class ReadBackMismatch(StoreError):
    """A read-back after a write did not return the written record."""

    def __init__(self, collection: str, record_id: str, reason: str) -> None:
        super().__init__(
            message=f"{collection}/{record_id}: {reason}",
            error_code="read_back_mismatch",
            context={"collection": collection, "record_id": record_id},
        )


async def retry(
    operation: Callable[[], Awaitable[R]],
    policy: RetryPolicy = DEFAULT_POLICY,
    sleep: Sleep = asyncio.sleep,
    describe: str = "operation",
) -> R:
    """Run `operation` until it succeeds or `policy.attempts` is exhausted.

    Sleeps `policy.retry_delay` between failed attempts. Raises
    `RetryExhausted` carrying the last error after the final attempt.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, policy.attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.warning("%s: attempt %d/%d failed: %s", describe, attempt, policy.attempts, e)
            if attempt < policy.attempts:
                await sleep(policy.retry_delay)
    logger.error("%s: giving up after %d attempts", describe, policy.attempts)
    raise RetryExhausted(describe, policy.attempts, last_error)


def _matches(found: Any, record: Any) -> bool:
    if found is None:
        return False
    if isinstance(record, dict) and "id" in record:
        return isinstance(found, dict) and found.get("id") == record["id"]
    return found == record


async def check_persisted(store: VerifiableStore, collection: str, record_id: str, record: Any) -> None:
    """Raise `ReadBackMismatch` unless both read paths return `record`."""
    found = await store.get(collection, record_id)
    if not _matches(found, record):
        raise ReadBackMismatch(collection, record_id, "record not returned by get")

    blob = await store.read_raw(collection)
    if blob is None:
        raise ReadBackMismatch(collection, record_id, "collection blob missing from backend")
    if not _matches(blob.get(record_id), record):
        raise ReadBackMismatch(collection, record_id, "record missing from backend blob")


async def write_verified(
    store: VerifiableStore,
    collection: str,
    record_id: str,
    record: Any,
    policy: RetryPolicy = DEFAULT_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Upsert `record` and confirm it is readable, retrying per `policy`.

    Raises `DurabilityError` naming the collection and record when the
    attempt ceiling is reached.
    """

    async def attempt() -> None:
        store.clear_collection_cache(collection)
        await store.upsert(collection, record_id, record)
        await sleep(policy.settle_delay)
        store.clear_collection_cache(collection)
        await check_persisted(store, collection, record_id, record)

    try:
        await retry(attempt, policy, sleep=sleep, describe=f"verified write {collection}/{record_id}")
    except RetryExhausted as e:
        raise DurabilityError(collection, record_id, e.attempts, e.last_error) from e.last_error
    logger.debug("Verified %s/%s", collection, record_id)


async def write_verified_batch(
    store: VerifiableStore,
    writes: Iterable[Tuple[str, str, Any]],
    policy: RetryPolicy = DEFAULT_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> List[Tuple[str, str]]:
    """Verify each `(collection, id, record)` write in order.

    Stops at the first record that cannot be verified and raises
    `BatchWriteError`; earlier records stay written.
    """
    completed: List[Tuple[str, str]] = []
    for collection, record_id, record in writes:
        try:
            await write_verified(store, collection, record_id, record, policy=policy, sleep=sleep)
        except DurabilityError as e:
            logger.error("Batch stopped at %s/%s; %d earlier records remain", collection, record_id, len(completed))
            raise BatchWriteError(e, completed) from e
        completed.append((collection, record_id))
    return completed
