from typing import Any
from fastapi import HTTPException
from starlette.requests import Request


def resolve_container(request: Request) -> Any:
    """Return the application's service container, or raise HTTP 500."""
    container = getattr(request.app.state, 'container', None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service container not configured")
    return container


def resolve_service(request: Request, name: str) -> Any:
    """Resolve a named service from the application's service container.

    Raises HTTP 500 when `app.state.container` is missing or lacks the
    named registration.
    """
    container = resolve_container(request)
    try:
        return container.get(name)
    except KeyError:
        raise HTTPException(status_code=500, detail=f"Service '{name}' not configured")
