import asyncio
from typing import Any, Optional

from session_lib.config.settings import SessionSettings
from session_lib.storage import InMemorySessionStore, SessionStore, StoreBackendUnavailable

BASE_SETTINGS = {
    'SessionCookieName': 'UserSession',
    'SessionTimeout': 60,
    'SessionStrategy': 'InMemory',
    'DefaultUsername': 'user',
    'DefaultPassword': 'test',
}


def make_settings(**overrides: Any) -> SessionSettings:
    return SessionSettings.model_validate({**BASE_SETTINGS, **overrides})


def run(coro):
    return asyncio.run(coro)


class FakeClock:
    """Settable replacement for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(InMemorySessionStore):
    """In-memory store that remembers which operations were called."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.calls: list[tuple[str, str]] = []

    async def _get(self, key: str) -> Optional[str]:
        self.calls.append(('get', key))
        return await super()._get(key)

    async def _set(self, key: str, value: str, timeout: int) -> None:
        self.calls.append(('set', key))
        await super()._set(key, value, timeout)

    async def _replace(self, key: str, value: str, timeout: int) -> None:
        self.calls.append(('replace', key))
        await super()._replace(key, value, timeout)

    async def _touch(self, key: str, timeout: int) -> None:
        self.calls.append(('touch', key))
        await super()._touch(key, timeout)

    def ops(self, name: str) -> list[str]:
        return [key for op, key in self.calls if op == name]


class UnavailableStore(SessionStore):
    """Store whose backend is always down."""

    async def _get(self, key):
        raise StoreBackendUnavailable(key, 'backend down')

    async def _set(self, key, value, timeout):
        raise StoreBackendUnavailable(key, 'backend down')

    async def _replace(self, key, value, timeout):
        raise StoreBackendUnavailable(key, 'backend down')

    async def _touch(self, key, timeout):
        raise StoreBackendUnavailable(key, 'backend down')

    async def _delete(self, key):
        raise StoreBackendUnavailable(key, 'backend down')
