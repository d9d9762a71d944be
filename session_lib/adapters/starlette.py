"""Adapter for Starlette / FastAPI requests.

Request attributes live on `request.state`, which Starlette shares between
middleware and endpoints for the same request. Cookies cannot be written
before a response exists, so `set_cookie` queues them on the request and
`SessionMiddleware` calls `apply_cookies` once the response is built.
"""
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import Response

from .interfaces import CookieOptions

PENDING_COOKIES = '_session_pending_cookies'


class StarletteAdapter:
    def get_header(self, request: Request, name: str) -> Optional[str]:
        return request.headers.get(name)

    def get_cookie(self, request: Request, name: str) -> Optional[str]:
        return request.cookies.get(name)

    def get_query(self, request: Request, name: str) -> Optional[str]:
        return request.query_params.get(name)

    def get_url(self, request: Request) -> str:
        return request.url.path

    def get_remote_address(self, request: Request) -> Optional[str]:
        return request.client.host if request.client else None

    def set_cookie(self, request: Request, name: str, value: str, options: CookieOptions) -> None:
        pending = getattr(request.state, PENDING_COOKIES, None)
        if pending is None:
            pending = []
            setattr(request.state, PENDING_COOKIES, pending)
        pending.append((name, value, options))

    def get_attribute(self, request: Request, key: str) -> Any:
        return getattr(request.state, key, None)

    def set_attribute(self, request: Request, key: str, value: Any) -> None:
        setattr(request.state, key, value)

    def apply_cookies(self, request: Request, response: Response) -> None:
        for name, value, options in getattr(request.state, PENDING_COOKIES, None) or []:
            response.set_cookie(
                key=name,
                value=value,
                max_age=options.max_age,
                path=options.path,
                domain=options.domain,
                httponly=options.http_only,
            )
