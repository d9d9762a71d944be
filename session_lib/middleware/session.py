from typing import Callable, Optional
import functools
import inspect
import logging
import uuid

from fastapi import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from session_lib.adapters.starlette import StarletteAdapter
from session_lib.services.resolver import resolve_service
from session_lib.session.manager import REQUEST_ID_KEY, SessionManager

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Resolve the session before the endpoint runs and write its cookie after.

    Per request: assign a correlation id, restore or create the session,
    import a temp-token identity when one is supplied, log the request, call
    the app, then copy cookies queued by the manager onto the response.
    """

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self.session_manager = session_manager

    async def dispatch(self, request: Request, call_next):
        mgr = self.session_manager
        request.state.RequestUUID = request.headers.get('x-request-id') or str(uuid.uuid4())

        await mgr.get_session(request)
        if not mgr.is_passthrough(request):
            await mgr.get_temp_session(request)
        mgr.log_session(request)

        response: Response = await call_next(request)

        adapter = mgr.adapter
        if isinstance(adapter, StarletteAdapter):
            adapter.apply_cookies(request, response)
        response.headers.setdefault('x-request-id', getattr(request.state, REQUEST_ID_KEY))
        return response


def access_denied_response(request: Request, error_code: dict) -> Response:
    """JSON 401 body used by the application's HTTPException handler."""
    logger.debug('Access denied for %s: %s', request.url.path, error_code)
    return JSONResponse(status_code=401, content=error_code)


def require_login(func: Callable) -> Callable:
    """Async-only decorator that rejects callers without a logged-in session.

    Preserves the wrapped function's signature so FastAPI validation still works.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        request: Optional[Request] = None
        for a in args:
            if isinstance(a, Request):
                request = a
                break
        if not request:
            request = kwargs.get('request')
        if not request:
            raise HTTPException(status_code=401, detail={'error': 'access_denied', 'message': 'Missing request.'})

        mgr = resolve_service(request, 'session_manager')
        if not mgr.check_if_logged_in(request):
            raise HTTPException(status_code=401, detail={'error': 'not_logged_in', 'message': 'Login required.'})
        return await func(*args, **kwargs)

    wrapper.__signature__ = inspect.signature(func)  # pyright: ignore[reportAttributeAccessIssue]
    return wrapper
