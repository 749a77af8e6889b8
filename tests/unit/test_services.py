import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from rentals_lib.services import ServiceContainer
from rentals_lib.services.resolver import resolve_container, resolve_service


class CachingService:
    def __init__(self):
        self.cleared = 0

    async def clear_cache(self):
        self.cleared += 1


def make_request(container):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(container=container)))


def test_factory_runs_once():
    c = ServiceContainer()
    calls = []
    c.register_factory('svc', lambda: calls.append(1) or object())
    first = c.get('svc')
    assert c.get('svc') is first
    assert calls == [1]
    assert 'svc' in c
    assert c.names() == ['svc']


def test_missing_service_raises_key_error():
    with pytest.raises(KeyError):
        ServiceContainer().get('nope')


def test_clear_caches_and_teardown():
    c = ServiceContainer()
    svc = CachingService()
    c.register_singleton('svc', svc)
    c.register_singleton('plain', object())

    assert asyncio.run(c.clear_caches()) == 1
    assert svc.cleared == 1
    asyncio.run(c.teardown())
    assert svc.cleared == 2
    assert 'svc' not in c


def test_resolver_maps_missing_service_to_500():
    c = ServiceContainer()
    c.register_singleton('auth_service', 'auth')
    assert resolve_service(make_request(c), 'auth_service') == 'auth'
    with pytest.raises(HTTPException) as info:
        resolve_service(make_request(c), 'other')
    assert info.value.status_code == 500
    with pytest.raises(HTTPException):
        resolve_service(make_request(None), 'auth_service')


def test_resolve_container_requires_configured_container():
    c = ServiceContainer()
    assert resolve_container(make_request(c)) is c
    with pytest.raises(HTTPException) as info:
        resolve_container(make_request(None))
    assert info.value.status_code == 500
    bare = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
    with pytest.raises(HTTPException):
        resolve_container(bare)


def test_admin_clear_cache_without_container_is_500():
    from rentals_lib.admin.api import api_admin_clear_cache

    with pytest.raises(HTTPException) as info:
        asyncio.run(api_admin_clear_cache(make_request(None)))
    assert info.value.status_code == 500
