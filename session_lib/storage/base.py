"""Session store interface definitions.

Defines the SessionStore abstract class used by the session manager to
persist serialized session records and temp tokens. Keys and values are
opaque strings; every key carries its own expiry in seconds.

Public operations are bounded by a deadline: a caller-supplied `deadline`
or, failing that, the store's `operation_timeout`. An elapsed deadline is
reported as `StoreBackendUnavailable`.
"""
from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Optional, TypeVar

from .errors import StoreBackendUnavailable

T = TypeVar("T")


def _require_str(name: str, value: object) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")


class SessionStore(ABC):
    """Abstract session store.

    Implementations must be safe to call from concurrent requests.
    """

    def __init__(self, operation_timeout: Optional[float] = None) -> None:
        self.operation_timeout = operation_timeout

    async def _bounded(self, key: str, op: Awaitable[T], deadline: Optional[float]) -> T:
        limit = deadline if deadline is not None else self.operation_timeout
        if limit is None:
            return await op
        try:
            return await asyncio.wait_for(op, timeout=limit)
        except asyncio.TimeoutError as e:
            raise StoreBackendUnavailable(key, f"store operation on {key!r} exceeded {limit}s") from e

    async def get(self, key: str, deadline: Optional[float] = None) -> Optional[str]:
        """Return the value stored under `key`, or None when absent."""
        _require_str("key", key)
        return await self._bounded(key, self._get(key), deadline)

    async def set(self, key: str, value: str, timeout: int, deadline: Optional[float] = None) -> None:
        """Store a new key. Raise `StoreAlreadyExists` if the key is present."""
        _require_str("key", key)
        _require_str("value", value)
        await self._bounded(key, self._set(key, value, timeout), deadline)

    async def replace(self, key: str, value: str, timeout: int, deadline: Optional[float] = None) -> None:
        """Create or overwrite `key`."""
        _require_str("key", key)
        _require_str("value", value)
        await self._bounded(key, self._replace(key, value, timeout), deadline)

    async def touch(self, key: str, timeout: int, deadline: Optional[float] = None) -> None:
        """Reset the expiry of `key`. Raise `StoreNotFound` if absent."""
        _require_str("key", key)
        await self._bounded(key, self._touch(key, timeout), deadline)

    async def delete(self, key: str, deadline: Optional[float] = None) -> None:
        """Remove `key`. Deleting an absent key is not an error."""
        _require_str("key", key)
        await self._bounded(key, self._delete(key), deadline)

    async def close(self) -> None:
        """Release backend resources. No-op unless the backend holds connections."""
        return None

    @abstractmethod
    async def _get(self, key: str) -> Optional[str]:
        """Backend lookup. Raise `StoreBackendUnavailable` on failure."""

    @abstractmethod
    async def _set(self, key: str, value: str, timeout: int) -> None:
        """Backend insert. Raise `StoreAlreadyExists` for present keys."""

    @abstractmethod
    async def _replace(self, key: str, value: str, timeout: int) -> None:
        """Backend upsert."""

    @abstractmethod
    async def _touch(self, key: str, timeout: int) -> None:
        """Backend expiry reset. Raise `StoreNotFound` for absent keys."""

    @abstractmethod
    async def _delete(self, key: str) -> None:
        """Backend removal; must be idempotent."""
