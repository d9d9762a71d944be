import inspect
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ServiceContainer:
    """A tiny, explicit DI container for the application's long-lived services.

    Services are registered by name as singletons. `aclose` releases every
    service that exposes `close()` (sync or async), in reverse registration
    order, when the application shuts down.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        try:
            return self._singletons[key]
        except KeyError:
            raise KeyError(f"No service registered for key '{key}'") from None

    async def aclose(self) -> None:
        for key, inst in reversed(list(self._singletons.items())):
            close = getattr(inst, 'close', None)
            if not callable(close):
                continue
            try:
                result = close()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Failed to close service '%s'", key)
