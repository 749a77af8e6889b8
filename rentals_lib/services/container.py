import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Explicit registry for the store, identity, auth and seeding services.

    Services are registered by name, either as ready instances or as
    zero-argument factories that run once on first `get`. The container owns
    the lifecycle of what it holds: `clear_caches()` drops in-process caches of
    every resolved service and `teardown()` also forgets the registrations,
    so an app (or a test) never shares cache state with another container.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        self._factories[key] = factory

    def __contains__(self, key: str) -> bool:
        return key in self._singletons or key in self._factories

    def names(self) -> List[str]:
        return sorted(set(self._singletons) | set(self._factories))

    def get(self, key: str) -> Any:
        if key in self._singletons:
            return self._singletons[key]
        factory = self._factories.get(key)
        if factory is None:
            raise KeyError(f"No service registered for key '{key}'")
        inst = factory()
        self._singletons[key] = inst
        return inst

    async def clear_caches(self) -> int:
        """Clear in-process caches of every resolved service.

        Returns the number of services whose caches were cleared.
        """
        cleared = 0
        for name, inst in list(self._singletons.items()):
            clear = getattr(inst, 'clear_cache', None)
            if not callable(clear):
                continue
            result = clear()
            if hasattr(result, '__await__'):
                await result
            cleared += 1
            logger.debug("Cleared caches of service %s", name)
        return cleared

    async def teardown(self) -> None:
        """Clear caches and forget every registration."""
        await self.clear_caches()
        self._singletons.clear()
        self._factories.clear()
