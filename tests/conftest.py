"""Pytest configuration helpers for test collection.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally, and provide the shared
settings/store/manager/app fixtures.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def clock():
    from tests.helpers import FakeClock
    return FakeClock()


@pytest.fixture
def settings():
    from tests.helpers import make_settings
    return make_settings()


@pytest.fixture
def store(clock):
    from session_lib.storage import InMemorySessionStore
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def manager(settings, store):
    from session_lib.adapters import MappingAdapter
    from session_lib.session import SessionManager
    return SessionManager(settings, store, MappingAdapter())


@pytest.fixture
def app(settings, store):
    from session_lib.main import create_app, Config
    return create_app(Config(settings=settings, store=store, configure_logging=False))


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as tc:
        yield tc
