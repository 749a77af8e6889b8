from typing import Protocol, Any, Dict, Optional, runtime_checkable


@runtime_checkable
class AuthServiceProtocol(Protocol):
    """Authentication interface used by the web layer.

    This Protocol describes the public surface that callers rely on. It is
    colocated with the `accounts` package since implementations live there
    and the shape is tightly coupled to that module's behaviour.
    """

    async def sign_up(self, email: str, password: str, role: str = 'tenant', profile: Optional[Dict[str, Any]] = None) -> Any: ...

    async def sign_in(self, email: str, password: str) -> Any: ...

    async def database_state(self) -> Dict[str, Any]: ...
