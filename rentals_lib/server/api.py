from typing import Any, Dict
from fastapi import APIRouter, Body, HTTPException, Request
from rentals_lib.services.resolver import resolve_service
from rentals_lib.admin.maintenance import save_with_space_check
from rentals_lib.store.errors import DurabilityError, StorageFullError
from .health import get_health
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get('/health')
async def api_health(request: Request):
    store = resolve_service(request, 'collection_store')
    return await get_health(store)


@router.get('/collections')
async def api_list_collections(request: Request):
    store = resolve_service(request, 'collection_store')
    return sorted(await store.collections())


@router.get('/collections/{name}')
async def api_list_records(name: str, request: Request):
    store = resolve_service(request, 'collection_store')
    return await store.list(name)


@router.get('/collections/{name}/{record_id}')
async def api_get_record(name: str, record_id: str, request: Request):
    store = resolve_service(request, 'collection_store')
    record = await store.get(name, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail={'error': 'not_found', 'message': f'{record_id} not found in {name}'})
    return record


@router.post('/collections/{name}', status_code=201)
async def api_create_record(name: str, request: Request, record: Dict[str, Any] = Body(...)):
    """Store a new record under a generated id and return it."""
    store = resolve_service(request, 'collection_store')
    record = dict(record, id=store.generate_id())
    return await _write(request, store, name, record['id'], record)


@router.put('/collections/{name}/{record_id}')
async def api_put_record(name: str, record_id: str, request: Request, record: Dict[str, Any] = Body(...)):
    store = resolve_service(request, 'collection_store')
    record = dict(record, id=record_id)
    return await _write(request, store, name, record_id, record)


@router.delete('/collections/{name}/{record_id}')
async def api_delete_record(name: str, record_id: str, request: Request):
    store = resolve_service(request, 'collection_store')
    if not await store.remove(name, record_id):
        raise HTTPException(status_code=403, detail={'error': 'protected_collection', 'message': f'Records in {name} cannot be deleted'})
    return {'ok': True}


async def _write(request: Request, store, name: str, record_id: str, record: Dict[str, Any]):
    policy = resolve_service(request, 'retry_policy')
    try:
        await save_with_space_check(store, name, record_id, record, policy=policy, cleanup_on_failure=False)
    except StorageFullError as e:
        logger.warning("Write to %s/%s refused: %s", name, record_id, e.message)
        raise HTTPException(status_code=507, detail={'error': e.error_code, 'message': e.message})
    except DurabilityError as e:
        logger.error("Write to %s/%s not durable: %s", name, record_id, e.message)
        raise HTTPException(status_code=503, detail={'error': e.error_code, 'message': e.message})
    return record
