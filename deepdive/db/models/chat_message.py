"""Chat message table."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import timestamp_column, utcnow


class ChatMessageRecord(SQLModel, table=True):
    """A single chat turn. ``position`` is the order within the file's transcript."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'model')", name="ck_chat_messages_role"),
        UniqueConstraint("file_id", "position", name="uq_chat_messages_file_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    file_id: str = Field(
        sa_column=Column(
            String(512),
            ForeignKey("files.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    role: str = Field(max_length=10)
    message_text: str
    position: int
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
