"""Tests for store selection from settings."""

from __future__ import annotations

import httpx
import pytest

from deepdive.config import Settings
from deepdive.store import (
    PostgresStore,
    RemoteStore,
    SQLiteStore,
    create_local_store,
    create_store,
    create_transport,
)


def test_sqlite_is_the_default(tmp_path) -> None:
    store = create_store(
        Settings(_env_file=None, DATABASE_URL=f"sqlite:///{tmp_path / 'x.db'}")
    )

    assert isinstance(store, SQLiteStore)
    assert store.database_path == str(tmp_path / "x.db")


def test_postgres_url_selects_postgres_store() -> None:
    store = create_store(Settings(_env_file=None, DATABASE_URL="postgresql://u:p@localhost/deepdive"))

    assert isinstance(store, PostgresStore)


def test_store_api_url_selects_remote_store() -> None:
    client = httpx.AsyncClient()
    store = create_store(
        Settings(_env_file=None, STORE_API_URL="http://localhost:3001/api"), client=client
    )

    assert isinstance(store, RemoteStore)
    assert store.transport.base_url == "http://localhost:3001/api"


def test_transport_uses_configured_retry_budget() -> None:
    transport = create_transport(
        Settings(
            _env_file=None,
            STORE_API_URL="http://localhost:3001/api",
            STORE_TIMEOUT_SECONDS=1.5,
            STORE_MAX_ATTEMPTS=4,
            STORE_BACKOFF_SECONDS=0.25,
        )
    )

    assert transport.timeout == 1.5
    assert transport.retry_policy.max_attempts == 4
    assert transport.retry_policy.initial_backoff == 0.25
    assert transport.retry_policy.jitter == 0.0


def test_transport_requires_url() -> None:
    with pytest.raises(ValueError):
        create_transport(Settings(_env_file=None))


def test_unsupported_database_url() -> None:
    with pytest.raises(ValueError):
        create_local_store(Settings(_env_file=None, DATABASE_URL="mysql://localhost/deepdive"))
