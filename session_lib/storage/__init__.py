"""Session store package: backend interface, errors and backend selection."""

from .base import SessionStore
from .errors import StoreAlreadyExists, StoreBackendUnavailable, StoreError, StoreNotFound
from .memory_backend import InMemorySessionStore

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "StoreError",
    "StoreNotFound",
    "StoreAlreadyExists",
    "StoreBackendUnavailable",
    "create_store",
]


def create_store(settings) -> SessionStore:
    """Build the store selected by `settings.strategy`.

    Networked backends are imported lazily so in-memory deployments do
    not need their client libraries loaded. An empty store URL selects
    the backend's default address.
    """
    from session_lib.config.settings import StoreKind

    if settings.strategy == StoreKind.IN_MEMORY:
        return InMemorySessionStore(
            prune_ops=settings.prune_ops,
            operation_timeout=settings.store_operation_timeout,
        )
    if settings.strategy == StoreKind.MEMCACHED:
        from .memcached_backend import DEFAULT_MEMCACHED_URL, MemcachedSessionStore

        return MemcachedSessionStore(
            url=settings.store_url or DEFAULT_MEMCACHED_URL,
            operation_timeout=settings.store_operation_timeout,
        )
    if settings.strategy == StoreKind.REDIS:
        from .redis_backend import DEFAULT_REDIS_URL, RedisSessionStore

        return RedisSessionStore(
            url=settings.store_url or DEFAULT_REDIS_URL,
            operation_timeout=settings.store_operation_timeout,
        )
    raise ValueError(f"Unsupported session strategy: {settings.strategy!r}")
