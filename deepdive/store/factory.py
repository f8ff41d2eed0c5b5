"""Builds the configured store once; callers pass the handle around explicitly."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from ..config.settings import Settings
from ..core.resilience import RetryPolicy
from ..db import DatabaseManager
from .base import PersistentStore
from .remote import RemoteStore
from .sql import PostgresStore, SQLiteStore
from .transport import ResilientTransport

logger = structlog.get_logger(__name__)


def create_transport(
    settings: Settings, client: Optional[httpx.AsyncClient] = None
) -> ResilientTransport:
    if not settings.store_api_url:
        raise ValueError("STORE_API_URL is not configured")
    policy = RetryPolicy(
        max_attempts=settings.store_max_attempts,
        initial_backoff=settings.store_backoff_seconds,
        max_backoff=30.0,
        multiplier=2.0,
        jitter=0.0,
    )
    return ResilientTransport(
        settings.store_api_url,
        timeout=settings.store_timeout_seconds,
        retry_policy=policy,
        client=client,
    )


def create_local_store(settings: Settings) -> PersistentStore:
    """SQL store for the configured database URL, ignoring ``STORE_API_URL``."""
    db = DatabaseManager(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.is_postgresql:
        logger.info("Using PostgreSQL store")
        return PostgresStore(db, backup_dir=settings.backup_dir)
    if settings.is_sqlite:
        logger.info("Using SQLite store", url=settings.database_url)
        return SQLiteStore(db, backup_dir=settings.backup_dir)
    raise ValueError(f"Unsupported DATABASE_URL: {settings.database_url}")


def create_store(
    settings: Settings, client: Optional[httpx.AsyncClient] = None
) -> PersistentStore:
    """Pick the store for this process.

    ``STORE_API_URL`` selects the remote HTTP store; otherwise ``DATABASE_URL``
    selects PostgreSQL or the embedded SQLite file.
    """
    if settings.uses_remote_store:
        logger.info("Using remote store", url=settings.store_api_url)
        return RemoteStore(create_transport(settings, client))
    return create_local_store(settings)


__all__ = ["create_local_store", "create_store", "create_transport"]
