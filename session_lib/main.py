"""Application factory for the session server.

This module exposes `create_app(config: Config) -> FastAPI` which performs
all heavy setup (logging, settings loading, store/manager composition,
middleware and router registration). Avoids performing side-effects at
import time so tests can construct isolated apps.

To create an app for production or local runs:

    from session_lib.main import create_app, Config
    app = create_app(Config(settings_path='data/config/session.yml'))
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request

from session_lib.adapters import StarletteAdapter
from session_lib.config.settings import SessionSettings, load_settings
from session_lib.logging_config import configure_logging
from session_lib.storage import SessionStore, create_store


@dataclass
class Config:
    settings_path: str = "data/config/session.yml"
    # Applied on top of the settings file, e.g. {'SessionStrategy': 'InMemory'}
    overrides: dict[str, Any] = field(default_factory=dict)
    # Pre-built settings/store skip file loading and store selection
    settings: Optional[SessionSettings] = None
    store: Optional[SessionStore] = None
    configure_logging: bool = True


def create_app(config: Config) -> FastAPI:
    """Create and return a configured FastAPI application."""
    settings = config.settings if config.settings is not None else load_settings(Path(config.settings_path), overrides=config.overrides)
    if config.configure_logging:
        logger = configure_logging(settings.log_level)
        logger.info("Starting session server (strategy=%s)", settings.strategy.value)

    store = config.store if config.store is not None else create_store(settings)

    from session_lib.session.manager import SessionManager
    session_manager = SessionManager(settings=settings, store=store, adapter=StarletteAdapter())

    from session_lib.services import ServiceContainer
    container = ServiceContainer()
    container.register_singleton("settings", settings)
    container.register_singleton("session_store", store)
    container.register_singleton("session_manager", session_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await session_manager.drain()
        await container.aclose()

    app = FastAPI(title="Session Server", lifespan=lifespan)
    app.state.container = container

    from session_lib.middleware import SessionMiddleware, access_denied_response
    app.add_middleware(SessionMiddleware, session_manager=session_manager)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if exc.status_code == 401:
            return access_denied_response(request, exc.detail)
        from fastapi.exception_handlers import http_exception_handler as default_handler
        return await default_handler(request, exc)

    # Router registration: import routers here to avoid import-time side-effects
    from session_lib.session.api import router as session_router
    from session_lib.server.api import router as server_router

    app.include_router(session_router)
    app.include_router(server_router)

    return app
