"""Uploaded file table."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel

from .base import timestamp_column, utcnow


class FileRecord(SQLModel, table=True):
    """A stored trading journal. Analysis results and chat messages hang off ``id``."""

    __tablename__ = "files"

    id: str = Field(primary_key=True, max_length=512)
    name: str = Field(max_length=255)
    mime_type: str = Field(default="", max_length=255)
    content: str
    is_binary: bool = Field(default=False)
    file_size: int = Field(default=0)
    upload_date: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(index=True))
    last_accessed: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(index=True))
