"""Tests for configuration loading and normalisation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from deepdive.config import Settings, get_settings, reset_settings

ENV_VARS = (
    "DATABASE_URL",
    "STORE_API_URL",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "FALLBACK_CACHE_BACKEND",
    "STORE_MAX_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite+aiosqlite:///./deepdive.db"
    assert settings.is_sqlite
    assert not settings.uses_remote_store
    assert settings.store_timeout_seconds == 5
    assert settings.store_max_attempts == 3
    assert settings.store_backoff_seconds == 2.0
    assert settings.fallback_cache_backend == "file"
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.port == 3001


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("sqlite:///./journal.db", "sqlite+aiosqlite:///./journal.db"),
        ("postgres://u:p@db/deepdive", "postgresql+asyncpg://u:p@db/deepdive"),
        ("postgresql://u:p@db/deepdive", "postgresql+asyncpg://u:p@db/deepdive"),
        ("postgresql+asyncpg://u:p@db/deepdive", "postgresql+asyncpg://u:p@db/deepdive"),
    ],
)
def test_database_url_is_made_async(raw: str, expected: str) -> None:
    assert Settings(_env_file=None, DATABASE_URL=raw).database_url == expected


def test_store_api_url_is_normalised() -> None:
    assert Settings(_env_file=None, STORE_API_URL=" http://localhost:3001/api/ ").store_api_url == (
        "http://localhost:3001/api"
    )
    assert Settings(_env_file=None, STORE_API_URL="   ").store_api_url is None


def test_gemini_api_key_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "from-gemini-var")

    assert Settings(_env_file=None).google_api_key == "from-gemini-var"


def test_store_max_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, STORE_MAX_ATTEMPTS=0)


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_API_URL", "http://remote/api")

    first = get_settings()

    assert get_settings() is first
    assert first.uses_remote_store
    reset_settings()
    monkeypatch.delenv("STORE_API_URL")
    assert get_settings() is not first
