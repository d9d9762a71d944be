"""Framework-free adapter over a plain `SimpleRequest`.

Useful for background workers and scripts that need session semantics
without an ASGI server, and for exercising the manager in tests.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .interfaces import CookieOptions


@dataclass
class SimpleRequest:
    url: str = '/'
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    remote_address: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    response_cookies: List[Tuple[str, str, CookieOptions]] = field(default_factory=list)

    def __post_init__(self) -> None:
        # header lookups are case-insensitive like HTTP
        self.headers = {k.lower(): v for k, v in self.headers.items()}


class MappingAdapter:
    def get_header(self, request: SimpleRequest, name: str) -> Optional[str]:
        return request.headers.get(name.lower())

    def get_cookie(self, request: SimpleRequest, name: str) -> Optional[str]:
        return request.cookies.get(name)

    def get_query(self, request: SimpleRequest, name: str) -> Optional[str]:
        return request.query.get(name)

    def get_url(self, request: SimpleRequest) -> str:
        return request.url

    def get_remote_address(self, request: SimpleRequest) -> Optional[str]:
        return request.remote_address

    def set_cookie(self, request: SimpleRequest, name: str, value: str, options: CookieOptions) -> None:
        request.response_cookies.append((name, value, options))

    def get_attribute(self, request: SimpleRequest, key: str) -> Any:
        return request.attributes.get(key)

    def set_attribute(self, request: SimpleRequest, key: str, value: Any) -> None:
        request.attributes[key] = value
