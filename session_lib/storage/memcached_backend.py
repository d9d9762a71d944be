"""Networked session store backed by a memcache-protocol server.

Operations map one-to-one onto memcache commands through `aiomcache`:
set -> ADD, replace -> SET, touch -> TOUCH, delete -> DELETE. Keys and
values travel as UTF-8 bytes. Client and connection failures are
network/backend failures and surface as `StoreBackendUnavailable`.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Tuple

import aiomcache
from aiomcache.exceptions import ClientException

from .base import SessionStore
from .errors import StoreAlreadyExists, StoreBackendUnavailable, StoreNotFound

logger = logging.getLogger(__name__)

DEFAULT_MEMCACHED_URL = '127.0.0.1:11211'
DEFAULT_MEMCACHED_PORT = 11211
_SCHEMES = ('memcache://', 'memcached://')
_BACKEND_ERRORS = (ClientException, OSError, EOFError)


def parse_memcached_url(url: str) -> Tuple[str, int]:
    """Split `host[:port]` (optionally `memcache://`-prefixed) into host and port.

    Raises ValueError for other URL schemes and for server lists, so a
    Redis URL left in the settings fails at startup with a clear message.
    """
    value = (url or '').strip()
    for scheme in _SCHEMES:
        if value.lower().startswith(scheme):
            value = value[len(scheme):]
            break
    else:
        if '://' in value:
            raise ValueError(f"Memcached URL must be host:port or memcache://host:port, got {url!r}")
    value = value.rstrip('/')
    if not value:
        raise ValueError("Memcached URL is empty")
    if ',' in value or ' ' in value:
        raise ValueError(f"Memcached URL must name a single server, got {url!r}")

    if value.startswith('['):
        host, _, rest = value[1:].partition(']')
        port = rest[1:] if rest.startswith(':') else ''
    else:
        host, _, port = value.partition(':')
    if not host:
        raise ValueError(f"Memcached URL has no host: {url!r}")
    try:
        return host, int(port) if port else DEFAULT_MEMCACHED_PORT
    except ValueError:
        raise ValueError(f"Memcached URL has an invalid port: {url!r}") from None


class MemcachedSessionStore(SessionStore):
    def __init__(
        self,
        url: str = DEFAULT_MEMCACHED_URL,
        client: Optional[Any] = None,
        operation_timeout: Optional[float] = None,
        pool_size: int = 2,
    ) -> None:
        super().__init__(operation_timeout=operation_timeout)
        self.url = url
        self.host, self.port = parse_memcached_url(url)
        if client is None:
            client = aiomcache.Client(self.host, self.port, pool_size=pool_size)
        self._client = client
        logger.debug("Session strategy is Memcached: %s:%s", self.host, self.port)

    @staticmethod
    def _key(key: str) -> bytes:
        return key.encode('utf-8')

    @staticmethod
    def _expiry(timeout: int) -> int:
        # memcache treats 0 as "never expires"
        return timeout if timeout and timeout > 0 else 0

    async def _get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(self._key(key))
        except _BACKEND_ERRORS as e:
            raise StoreBackendUnavailable(key, f"get failed: {e}") from e
        return value.decode('utf-8') if value is not None else None

    async def _set(self, key: str, value: str, timeout: int) -> None:
        try:
            stored = await self._client.add(self._key(key), value.encode('utf-8'), exptime=self._expiry(timeout))
        except _BACKEND_ERRORS as e:
            raise StoreBackendUnavailable(key, f"set failed: {e}") from e
        if not stored:
            raise StoreAlreadyExists(key)

    async def _replace(self, key: str, value: str, timeout: int) -> None:
        try:
            await self._client.set(self._key(key), value.encode('utf-8'), exptime=self._expiry(timeout))
        except _BACKEND_ERRORS as e:
            raise StoreBackendUnavailable(key, f"replace failed: {e}") from e

    async def _touch(self, key: str, timeout: int) -> None:
        try:
            found = await self._client.touch(self._key(key), self._expiry(timeout))
        except _BACKEND_ERRORS as e:
            raise StoreBackendUnavailable(key, f"touch failed: {e}") from e
        if not found:
            raise StoreNotFound(key)

    async def _delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except _BACKEND_ERRORS as e:
            raise StoreBackendUnavailable(key, f"delete failed: {e}") from e

    async def close(self) -> None:
        await self._client.close()
