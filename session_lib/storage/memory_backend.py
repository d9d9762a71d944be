"""In-process session store.

Keeps `key -> (payload, inserted_at_ms, timeout_seconds)` in a map owned by
the store instance. Expired keys are evicted lazily: on access through
`get`/`touch`, and by a full sweep every `prune_ops` successful `set` calls.

State does not survive a restart, so this backend only suits single
instance and development deployments.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Optional

from .base import SessionStore
from .errors import StoreAlreadyExists, StoreNotFound

logger = logging.getLogger(__name__)

PRUNE_OPS = 100


@dataclass
class _Entry:
    content: str
    timestamp: float
    timeout: int


class InMemorySessionStore(SessionStore):
    def __init__(
        self,
        prune_ops: int = PRUNE_OPS,
        clock: Callable[[], float] = time.time,
        operation_timeout: Optional[float] = None,
    ) -> None:
        super().__init__(operation_timeout=operation_timeout)
        self._lock = RLock()
        self._entries: Dict[str, _Entry] = {}
        self._prune_counter = 0
        self._prune_ops = prune_ops
        self._clock = clock
        logger.debug("Session strategy is InMemory (prune every %d sets)", prune_ops)

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def check_timeout(self, key: str) -> None:
        """Evict `key` if its timeout window has passed."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return
            if self._now_ms() - entry.timestamp > entry.timeout * 1000:
                del self._entries[key]

    def prune(self) -> int:
        """Evict every expired key and return how many were removed."""
        with self._lock:
            before = len(self._entries)
            for key in list(self._entries):
                self.check_timeout(key)
            removed = before - len(self._entries)
        logger.debug("Pruned %d expired keys from in-memory session store", removed)
        return removed

    async def _get(self, key: str) -> Optional[str]:
        with self._lock:
            self.check_timeout(key)
            entry = self._entries.get(key)
            return entry.content if entry else None

    async def _touch(self, key: str, timeout: int) -> None:
        with self._lock:
            self.check_timeout(key)
            entry = self._entries.get(key)
            if entry is None:
                raise StoreNotFound(key, "Session ID not found")
            entry.timestamp = self._now_ms()
            entry.timeout = timeout

    async def _set(self, key: str, value: str, timeout: int) -> None:
        with self._lock:
            self.check_timeout(key)
            if key in self._entries:
                raise StoreAlreadyExists(key, "Session ID key already exists, use replace instead")
            self._prune_counter += 1
            if self._prune_counter > self._prune_ops:
                self._prune_counter = 0
                self.prune()
            self._write(key, value, timeout)

    async def _replace(self, key: str, value: str, timeout: int) -> None:
        with self._lock:
            self._write(key, value, timeout)

    async def _delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _write(self, key: str, value: str, timeout: int) -> None:
        self._entries[key] = _Entry(content=value, timestamp=self._now_ms(), timeout=timeout)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
