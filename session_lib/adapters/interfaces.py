from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class CookieOptions:
    max_age: Optional[int] = None
    path: str = '/'
    http_only: bool = True
    domain: Optional[str] = None


@runtime_checkable
class HostAdapter(Protocol):
    """Capability interface between the session manager and a host framework.

    Every method takes the host's own request object. The manager never
    touches that object directly, so supporting another framework means
    writing one adapter rather than subclassing the manager.
    """

    def get_header(self, request: Any, name: str) -> Optional[str]: ...

    def get_cookie(self, request: Any, name: str) -> Optional[str]: ...

    def get_query(self, request: Any, name: str) -> Optional[str]: ...

    def get_url(self, request: Any) -> str: ...

    def get_remote_address(self, request: Any) -> Optional[str]: ...

    def set_cookie(self, request: Any, name: str, value: str, options: CookieOptions) -> None: ...

    def get_attribute(self, request: Any, key: str) -> Any: ...

    def set_attribute(self, request: Any, key: str, value: Any) -> None: ...
