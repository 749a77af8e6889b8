"""Application factory for the rentals store FastAPI app.

This module exposes `create_app(config: Config) -> FastAPI` which performs
all setup (logging, storage/service composition and router registration).
Nothing happens at import time so tests can construct isolated apps.

    from rentals_lib.main import create_app
    from rentals_lib.config import load_config
    app = create_app(load_config())
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rentals_lib.config import Config
from rentals_lib.logging_config import configure_logging
from rentals_lib.services import ServiceContainer
from rentals_lib.storage import create_storage, get_serializer, EncryptedSerializer
from rentals_lib.store.errors import StoreError


def build_container(config: Config) -> ServiceContainer:
    """Compose the storage backend and every service described by `config`."""
    serializer = get_serializer(config.serializer)
    backend = create_storage(
        backend=config.storage_backend,
        data_dir=config.data_dir,
        file_extension=serializer.file_extension,
    )
    policy = config.retry_policy()

    from rentals_lib.store import CollectionStore
    store = CollectionStore(
        backend,
        serializer=serializer,
        key_prefix=config.key_prefix,
        protected_collections=config.protected_collections,
        allow_data_clear=config.allow_data_clear,
    )

    from rentals_lib.accounts import AuthService, IdentityStore
    identity_serializer = serializer
    if config.identity_secret:
        identity_serializer = EncryptedSerializer(password=config.identity_secret, base_serializer=serializer)
    identity = IdentityStore(backend, serializer=identity_serializer)
    auth = AuthService(
        identity,
        store,
        password_iterations=config.password_iterations,
        allow_data_clear=config.allow_data_clear,
    )

    from rentals_lib.owners import OwnerApprovalService, OwnerSeeder
    approvals = OwnerApprovalService(store, ttl=config.query_cache_ttl, policy=policy)
    seeder = OwnerSeeder(auth, approvals, policy=policy)

    container = ServiceContainer()
    container.register_singleton("config", config)
    container.register_singleton("retry_policy", policy)
    container.register_singleton("storage_backend", backend)
    container.register_singleton("collection_store", store)
    container.register_singleton("identity_store", identity)
    container.register_singleton("auth_service", auth)
    container.register_singleton("owner_approvals", approvals)
    container.register_singleton("owner_seeder", seeder)
    return container


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and return a configured FastAPI application."""
    config = config or Config()
    logger = configure_logging(level=config.log_level)

    container = build_container(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await container.clear_caches()

    app = FastAPI(title="Rentals Store Server", lifespan=lifespan)
    # Services are resolved from the container only, never from app.state attributes
    app.state.container = container

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Unhandled store error on %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=500, content={'error': exc.error_code, 'message': exc.message})

    from rentals_lib.accounts.api import router as auth_router
    from rentals_lib.server.api import router as server_router
    from rentals_lib.admin.api import router as admin_router

    app.include_router(auth_router, prefix='/api')
    app.include_router(server_router, prefix='/api')
    app.include_router(admin_router, prefix='/api')

    if config.allow_data_clear:
        logger.warning("Data clearing is ENABLED; development operations can erase stored data")
    return app
