"""Session layer settings.

Settings use the external option names (`SessionCookieName`,
`SessionTimeout`, ...) as aliases so a YAML file or a plain dict written
for the session layer can be validated directly:

    settings = SessionSettings.model_validate({'SessionTimeout': 3600})
    settings = load_settings(Path('data/config/session.yml'))
"""
from __future__ import annotations
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

REDIS_URL_SCHEMES = ('redis://', 'rediss://', 'unix://')
MEMCACHED_URL_SCHEMES = ('memcache://', 'memcached://')
DEFAULT_PASSTHROUGH_URLS = ('/ping.html', '/version', '/health')


class StoreKind(str, Enum):
    MEMCACHED = 'Memcached'
    REDIS = 'Redis'
    IN_MEMORY = 'InMemory'

    @classmethod
    def _missing_(cls, value: object) -> Optional['StoreKind']:
        if isinstance(value, str) and value.lower() in ('memcached', 'memcache', 'networked'):
            return cls.MEMCACHED
        if isinstance(value, str) and value.lower() == 'redis':
            return cls.REDIS
        if isinstance(value, str) and value.lower() in ('inmemory', 'in_memory', 'memory'):
            return cls.IN_MEMORY
        return None


class SessionSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cookie_name: str = Field('UserSession', alias='SessionCookieName')
    # seconds; no default on purpose
    timeout: int = Field(..., alias='SessionTimeout', gt=0)
    # minutes
    temp_token_timeout: int = Field(60, alias='SessionTempTokenTimeout', gt=0)
    temp_token_single_use: bool = Field(False, alias='SessionTempTokenSingleUse')
    strategy: StoreKind = Field(StoreKind.MEMCACHED, alias='SessionStrategy')
    # None selects the backend default (127.0.0.1:11211 or redis://localhost:6379/0)
    store_url: Optional[str] = Field(
        None,
        alias='SessionStoreURL',
        validation_alias=AliasChoices('SessionStoreURL', 'MemcachedURL', 'store_url'),
    )
    store_operation_timeout: Optional[float] = Field(5.0, alias='StoreOperationTimeout')
    prune_ops: int = Field(100, alias='InMemoryPruneOps', gt=0)
    default_username: Optional[str] = Field(None, alias='DefaultUsername')
    default_password: Optional[str] = Field(None, alias='DefaultPassword')
    passthrough_urls: tuple[str, ...] = Field(DEFAULT_PASSTHROUGH_URLS, alias='PassthroughURLs')
    wildcard_domain_suffix: Optional[str] = Field(None, alias='WildcardDomainSuffix')
    mobile_user_agent_pattern: str = Field('iOS', alias='MobileUserAgentPattern')
    log_level: str = Field('WARNING', alias='LogLevel')

    @field_validator('strategy', mode='before')
    @classmethod
    def _fallback_strategy(cls, value: Any) -> Any:
        # Unknown or empty strategies fall back to the default networked store
        if value in (None, ''):
            return StoreKind.MEMCACHED
        try:
            return StoreKind(value)
        except ValueError:
            logger.warning('Unknown SessionStrategy %r; using %s', value, StoreKind.MEMCACHED.value)
            return StoreKind.MEMCACHED

    @model_validator(mode='after')
    def _check_store_url(self) -> 'SessionSettings':
        url = (self.store_url or '').strip().lower()
        if not url:
            return self
        if self.strategy is StoreKind.MEMCACHED and '://' in url and not url.startswith(MEMCACHED_URL_SCHEMES):
            raise ValueError(f'SessionStrategy Memcached needs a host:port store URL, got {self.store_url!r}')
        if self.strategy is StoreKind.REDIS and not url.startswith(REDIS_URL_SCHEMES):
            raise ValueError(f'SessionStrategy Redis needs a redis://, rediss:// or unix:// store URL, got {self.store_url!r}')
        return self

    @property
    def temp_token_timeout_seconds(self) -> int:
        return self.temp_token_timeout * 60


def load_settings(path: Path, overrides: Optional[dict[str, Any]] = None) -> SessionSettings:
    """Read settings from a YAML file, applying `overrides` on top.

    A missing file is treated as empty, so `SessionTimeout` must then come
    from `overrides`; pydantic raises ValidationError otherwise.
    """
    raw: dict[str, Any] = {}
    if path.exists():
        with path.open('r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f'{path} must contain a mapping of settings')
    else:
        logger.info('Settings file %s not found; using defaults and overrides', path)
    if overrides:
        raw.update(overrides)
    return SessionSettings.model_validate(raw)
