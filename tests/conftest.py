"""
Global pytest fixtures for the Shortener test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory and file-backed storage fixtures
    - Provide a ShortURLManager fixture wired to the memory storage fixture

Why an app factory?
    `create_app(settings, storage)` gives every test its own storage and
    manager, eliminating cross-test state.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortener.config import Settings
from shortener.manager.generator import AliasGenerator
from shortener.manager.shorturl_manager import ShortURLManager
from shortener.storage.file_storage import FileStorage
from shortener.storage.memory_storage import MemoryStorage

BASE_URL = "http://short.test"


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL, trusted_subnet="10.0.0.0/8")


@pytest.fixture
def storage() -> MemoryStorage:
    """Fresh in-memory backend."""
    return MemoryStorage()


@pytest.fixture
def file_path(tmp_path) -> str:
    return str(tmp_path / "db" / "urls.jsonl")


@pytest.fixture
def file_storage(file_path):
    """File backend on a per-test temp file; closed after the test."""
    fs = FileStorage(file_path)
    yield fs
    fs.close()


@pytest.fixture
def manager(storage: MemoryStorage) -> ShortURLManager:
    """ShortURLManager wired to the memory storage fixture (5-char aliases)."""
    return ShortURLManager(storage=storage, generator=AliasGenerator(5), base_url=BASE_URL)


@pytest.fixture
def app(settings, storage):
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def client(app) -> TestClient:
    """
    TestClient around a fresh app instance.

    Redirects are not followed so tests can assert on 307 and Location.
    """
    with TestClient(app, follow_redirects=False) as c:
        yield c
