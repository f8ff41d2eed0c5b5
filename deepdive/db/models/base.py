"""Shared column helpers for the store tables."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timezone-aware UTC. Naive values are taken to be UTC already.

    SQLite hands stored timestamps back without an offset, so values read
    from the database go through here as well as values written to it.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timestamp_column(*, index: bool = False) -> Column:
    return Column(DateTime(timezone=True), nullable=False, index=index)


def json_column(nullable: bool = True) -> Column:
    """JSON text on SQLite, JSONB on PostgreSQL."""
    return Column(JSON().with_variant(JSONB(), "postgresql"), nullable=nullable)
