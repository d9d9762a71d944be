"""Networked session store backed by Redis.

Each operation is a thin passthrough to `redis.asyncio`. Every failure that
the client reports is a network/backend failure and is surfaced as
`StoreBackendUnavailable`.
"""
from __future__ import annotations
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .base import SessionStore
from .errors import StoreAlreadyExists, StoreBackendUnavailable, StoreNotFound

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class RedisSessionStore(SessionStore):
    def __init__(
        self,
        url: str = DEFAULT_REDIS_URL,
        client: Optional[Any] = None,
        operation_timeout: Optional[float] = None,
    ) -> None:
        super().__init__(operation_timeout=operation_timeout)
        self.url = url
        if client is None:
            client = redis.Redis.from_url(url, decode_responses=True)
        self._client = client
        logger.debug("Session strategy is Redis: %s", url)

    @staticmethod
    def _expiry(timeout: int) -> Optional[int]:
        # Redis rejects a non-positive EX; treat it as "no expiry"
        return timeout if timeout and timeout > 0 else None

    async def _get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            raise StoreBackendUnavailable(key, f"get failed: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def _set(self, key: str, value: str, timeout: int) -> None:
        try:
            stored = await self._client.set(key, value, ex=self._expiry(timeout), nx=True)
        except RedisError as e:
            raise StoreBackendUnavailable(key, f"set failed: {e}") from e
        if not stored:
            raise StoreAlreadyExists(key)

    async def _replace(self, key: str, value: str, timeout: int) -> None:
        try:
            await self._client.set(key, value, ex=self._expiry(timeout))
        except RedisError as e:
            raise StoreBackendUnavailable(key, f"replace failed: {e}") from e

    async def _touch(self, key: str, timeout: int) -> None:
        try:
            if self._expiry(timeout) is None:
                found = await self._client.persist(key) or await self._client.exists(key)
            else:
                found = await self._client.expire(key, timeout)
        except RedisError as e:
            raise StoreBackendUnavailable(key, f"touch failed: {e}") from e
        if not found:
            raise StoreNotFound(key)

    async def _delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise StoreBackendUnavailable(key, f"delete failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
