"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient

from deepdive.cache import FallbackCache, MemoryCacheBackend
from deepdive.db import DatabaseManager
from deepdive.services import SessionController
from deepdive.store import SQLiteStore

from .factories import FakeAnalyzer, FakeChat, UnreachableStore


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'deepdive.db'}"


@pytest.fixture
async def sqlite_store(sqlite_url: str, tmp_path: Path) -> AsyncGenerator[SQLiteStore, None]:
    """File backed SQLite store with tables created."""
    store = SQLiteStore(DatabaseManager(sqlite_url), backup_dir=str(tmp_path / "backups"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def offline_store(tmp_path: Path) -> AsyncGenerator[UnreachableStore, None]:
    url = f"sqlite+aiosqlite:///{tmp_path / 'offline.db'}"
    store = UnreachableStore(DatabaseManager(url), backup_dir=str(tmp_path / "backups"))
    yield store
    await store.close()


@pytest.fixture
def fallback_cache() -> FallbackCache:
    return FallbackCache(MemoryCacheBackend())


@pytest.fixture
def analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def chat_service() -> FakeChat:
    return FakeChat()


@pytest.fixture
def controller(
    sqlite_store: SQLiteStore,
    fallback_cache: FallbackCache,
    analyzer: FakeAnalyzer,
    chat_service: FakeChat,
) -> SessionController:
    return SessionController(
        sqlite_store, fallback_cache, analyzer, chat_service, recovery_enabled=False
    )


@pytest.fixture
async def redis_client() -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
    """Provide a fake Redis client for testing."""
    client = fakeredis.aioredis.FakeRedis()
    yield client
    await client.aclose()


@pytest.fixture
async def async_client(sqlite_store: SQLiteStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to an app serving ``sqlite_store``."""
    from deepdive.config import Settings
    from deepdive.main import create_app

    app = create_app(Settings(), store=sqlite_store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
