"""Maintenance helpers over the collection store.

Storage statistics, space checks and retention cleanup, duplicate listing
cleanup and an integrity check for owner applications. These operate on
whole collections and are meant for admin tooling, not request paths.
`save_with_space_check` is the exception: it is the guarded write used when
a record must fit the storage budget.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Sequence

from rentals_lib.accounts.auth import USERS_COLLECTION
from rentals_lib.owners.approvals import (
    OWNER_APPLICATIONS,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from rentals_lib.owners.seeding import PUBLISHED_LISTINGS
from rentals_lib.store.collection_store import CollectionStore
from rentals_lib.store.errors import StorageFullError, StorageReadError
from rentals_lib.store.verification import DEFAULT_POLICY, RetryPolicy, Sleep, write_verified

logger = logging.getLogger(__name__)

# Browser local-storage quota the stored collections are sized against
ESTIMATED_STORAGE_LIMIT = 5 * 1024 * 1024

DRAFT_LISTINGS = 'draft_listings'
PROPERTY_PHOTOS = 'property_photos'
PUBLISHED_KEEP = 50
DRAFT_KEEP = 20


async def storage_stats(store: CollectionStore) -> Dict[str, Any]:
    """Record count and serialized size of every persisted collection.

    A collection whose blob cannot be decoded still reports its size, with a
    zero count and `corrupt` set.
    """
    collections: Dict[str, Dict[str, Any]] = {}
    total = 0
    for name in sorted(await store.collections()):
        size = await store.raw_size(name)
        try:
            blob = await store.read_raw(name) or {}
        except StorageReadError as e:
            logger.warning("Collection %s is unreadable, counting it as empty: %s", name, e.reason)
            collections[name] = {'count': 0, 'size': size, 'corrupt': True}
        else:
            collections[name] = {'count': len(blob), 'size': size}
        total += size
    return {
        'total_size': total,
        'available_space': max(0, ESTIMATED_STORAGE_LIMIT - total),
        'collections': collections,
    }


async def check_storage_space(store: CollectionStore, estimated_size: int) -> Dict[str, Any]:
    """Report whether `estimated_size` more bytes fit under the storage limit.

    `needs_cleanup` is raised once less than twice the estimate is left.
    When the backend cannot be measured, there is assumed to be no space.
    """
    try:
        stats = await storage_stats(store)
    except Exception as e:
        logger.error("Failed to measure storage: %s", e)
        return {'has_space': False, 'available_space': 0, 'needs_cleanup': True}
    available = stats['available_space']
    return {
        'has_space': available > estimated_size,
        'available_space': available,
        'needs_cleanup': available < estimated_size * 2,
    }


def _newest_first(records: Dict[str, Any], *fields: str):
    def stamp(item):
        record = item[1]
        for f in fields:
            value = record.get(f)
            if value:
                return str(value)
        return ''
    return sorted(records.items(), key=stamp, reverse=True)


async def _keep_newest(store: CollectionStore, collection: str, keep: int, *fields: str) -> Dict[str, Any]:
    store.clear_collection_cache(collection)
    records = await store.items(collection)
    dicts = {k: v for k, v in records.items() if isinstance(v, dict)}
    if len(dicts) <= keep:
        return records
    kept = dict(_newest_first(dicts, *fields)[:keep])
    kept.update({k: v for k, v in records.items() if not isinstance(v, dict)})
    await store.replace(collection, kept)
    logger.info("Trimmed %s to the newest %d records (removed %d)", collection, keep, len(records) - len(kept))
    return kept


async def cleanup_storage(
    store: CollectionStore,
    published_keep: int = PUBLISHED_KEEP,
    draft_keep: int = DRAFT_KEEP,
) -> Dict[str, Any]:
    """Free space by dropping old listings and the photos they leave behind.

    Keeps the newest `published_keep` published listings (by `published_at`,
    falling back to `created_at`) and the newest `draft_keep` drafts (by
    `updated_at`, then `created_at`). Photos whose `listing_id` matches no
    remaining listing are removed. Returns `cleaned` and `freed_space`, the
    total serialized size before minus after.
    """
    before = (await storage_stats(store))['total_size']
    published = await _keep_newest(store, PUBLISHED_LISTINGS, published_keep, 'published_at', 'created_at')
    drafts = await _keep_newest(store, DRAFT_LISTINGS, draft_keep, 'updated_at', 'created_at')

    listing_ids = set(published) | set(drafts)
    for records in (published, drafts):
        listing_ids.update(r.get('id') for r in records.values() if isinstance(r, dict))

    store.clear_collection_cache(PROPERTY_PHOTOS)
    photos = await store.items(PROPERTY_PHOTOS)
    kept_photos = {
        k: p for k, p in photos.items()
        if not isinstance(p, dict) or p.get('listing_id') in listing_ids
    }
    if len(kept_photos) != len(photos):
        await store.replace(PROPERTY_PHOTOS, kept_photos)
        logger.info("Removed %d orphaned photos", len(photos) - len(kept_photos))

    after = (await storage_stats(store))['total_size']
    freed = max(0, before - after)
    logger.info("Storage cleanup freed %d bytes", freed)
    return {'cleaned': True, 'freed_space': freed}


async def save_with_space_check(
    store: CollectionStore,
    collection: str,
    record_id: str,
    record: Any,
    policy: RetryPolicy = DEFAULT_POLICY,
    sleep: Sleep = asyncio.sleep,
    cleanup_on_failure: bool = True,
) -> None:
    """Verified write that first checks the record fits the storage budget.

    When it does not fit and `cleanup_on_failure` is set, `cleanup_storage`
    runs once before the check is repeated. Raises `StorageFullError` when
    there is still no room.
    """
    required = len(store.serializer.dump(record))
    space = await check_storage_space(store, required)
    if not space['has_space'] and cleanup_on_failure:
        logger.warning("Insufficient space for %s/%s, attempting cleanup", collection, record_id)
        await cleanup_storage(store)
        space = await check_storage_space(store, required)
    if not space['has_space']:
        raise StorageFullError(space['available_space'], required)
    await write_verified(store, collection, record_id, record, policy=policy, sleep=sleep)


async def remove_duplicates(
    store: CollectionStore,
    collection: str,
    key_fields: Sequence[str] = ('address', 'property_type', 'user_id'),
    newest_field: str = 'published_at',
) -> int:
    """Keep one record per `key_fields` tuple, preferring the newest `newest_field`.

    Returns the number of records removed. The collection is rewritten only
    when something was removed. Records that are not mappings are kept
    untouched.
    """
    store.clear_collection_cache(collection)
    records = await store.items(collection)
    kept: Dict[tuple, tuple] = {}
    passthrough = {k: v for k, v in records.items() if not isinstance(v, dict)}
    for record_id, record in records.items():
        if record_id in passthrough:
            continue
        key = tuple(record.get(f) for f in key_fields)
        existing = kept.get(key)
        if existing is None:
            kept[key] = (record_id, record)
        elif (record.get(newest_field) or '') > (existing[1].get(newest_field) or ''):
            kept[key] = (record_id, record)

    removed = len(records) - len(kept) - len(passthrough)
    if removed:
        survivors = dict(kept.values())
        survivors.update(passthrough)
        await store.replace(collection, survivors)
        logger.info("Cleaned %s: %d -> %d (removed %d duplicates)", collection, len(records), len(survivors), removed)
    return removed


async def verify_integrity(store: CollectionStore) -> Dict[str, Any]:
    """Check that owner applications point at existing user records."""
    for col in (USERS_COLLECTION, OWNER_APPLICATIONS):
        store.clear_collection_cache(col)
    # Only mapping records carry ids and links; anything else is skipped
    users = [u for u in await store.list(USERS_COLLECTION) if isinstance(u, dict)]
    applications = [a for a in await store.list(OWNER_APPLICATIONS) if isinstance(a, dict)]
    user_ids = {u.get('id') for u in users}

    by_status = {STATUS_APPROVED: 0, STATUS_PENDING: 0, STATUS_REJECTED: 0}
    missing_user_records = []
    orphaned_applications = []
    for app in applications:
        status = app.get('status')
        if status in by_status:
            by_status[status] += 1
        if app.get('user_id') not in user_ids:
            orphaned_applications.append(app.get('id'))
            if status == STATUS_APPROVED:
                missing_user_records.append(app.get('user_id'))
                logger.warning("Missing user record for approved application %s, user %s", app.get('id'), app.get('user_id'))

    approved_user_ids = {a.get('user_id') for a in applications if a.get('status') == STATUS_APPROVED}
    success = not missing_user_records and not orphaned_applications
    return {
        'success': success,
        'total_users': len(users),
        'total_applications': len(applications),
        'approved_applications': by_status[STATUS_APPROVED],
        'pending_applications': by_status[STATUS_PENDING],
        'rejected_applications': by_status[STATUS_REJECTED],
        'approved_owners': len(approved_user_ids & user_ids),
        'missing_user_records': missing_user_records,
        'orphaned_applications': orphaned_applications,
        'message': 'Database integrity verified' if success else 'Database integrity issues found',
    }
