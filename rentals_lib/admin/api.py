from dataclasses import asdict
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field
from rentals_lib.services.resolver import resolve_container, resolve_service
from rentals_lib.owners.seeding import BARANGAYS, DEFAULT_SEED_PASSWORD, OWNER_NAMES, PUBLISHED_LISTINGS
from . import maintenance
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


class SeedRequest(BaseModel):
    barangays: List[str] = list(BARANGAYS)
    owners_per_barangay: int = len(OWNER_NAMES)
    password: str = DEFAULT_SEED_PASSWORD


class CleanupRequest(BaseModel):
    published_keep: int = Field(maintenance.PUBLISHED_KEEP, ge=0)
    draft_keep: int = Field(maintenance.DRAFT_KEEP, ge=0)


class DedupeRequest(BaseModel):
    collection: str = PUBLISHED_LISTINGS
    key_fields: Optional[List[str]] = None


@router.get('/admin/stats')
async def api_admin_stats(request: Request):
    store = resolve_service(request, 'collection_store')
    return await maintenance.storage_stats(store)


@router.get('/admin/space')
async def api_admin_space(request: Request, estimated_size: int = Query(0, ge=0)):
    store = resolve_service(request, 'collection_store')
    return await maintenance.check_storage_space(store, estimated_size)


@router.get('/admin/integrity')
async def api_admin_integrity(request: Request):
    store = resolve_service(request, 'collection_store')
    return await maintenance.verify_integrity(store)


@router.get('/admin/accounts')
async def api_admin_accounts(request: Request):
    auth = resolve_service(request, 'auth_service')
    return await auth.database_state()


@router.post('/admin/clear-cache')
async def api_admin_clear_cache(request: Request):
    container = resolve_container(request)
    await container.clear_caches()
    logger.info("All in-process caches cleared")
    return {'ok': True}


@router.post('/admin/dedupe')
async def api_admin_dedupe(payload: DedupeRequest, request: Request):
    store = resolve_service(request, 'collection_store')
    if payload.key_fields:
        removed = await maintenance.remove_duplicates(store, payload.collection, key_fields=payload.key_fields)
    else:
        removed = await maintenance.remove_duplicates(store, payload.collection)
    return {'collection': payload.collection, 'removed': removed}


@router.post('/admin/cleanup')
async def api_admin_cleanup(payload: CleanupRequest, request: Request):
    store = resolve_service(request, 'collection_store')
    return await maintenance.cleanup_storage(
        store, published_keep=payload.published_keep, draft_keep=payload.draft_keep
    )


@router.post('/admin/clear-all')
async def api_admin_clear_all(request: Request):
    store = resolve_service(request, 'collection_store')
    auth = resolve_service(request, 'auth_service')
    if not await store.clear_all():
        raise HTTPException(status_code=403, detail={'error': 'data_clear_disabled', 'message': 'Data clearing is disabled in this environment'})
    await auth.clear_all_users()
    return {'ok': True}


@router.post('/admin/seed')
async def api_admin_seed(payload: SeedRequest, request: Request):
    seeder = resolve_service(request, 'owner_seeder')
    try:
        report = await seeder.seed(payload.barangays, payload.owners_per_barangay, payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={'error': 'invalid_seed_request', 'message': str(e)})
    result = asdict(report)
    # Never echo seeded passwords back
    for owner in result['owners']:
        owner.pop('password', None)
    return result
