"""Database models for DeepDive."""

from __future__ import annotations

from .analysis_result import AnalysisRecord
from .base import as_utc, timestamp_column, utcnow
from .chat_message import ChatMessageRecord
from .file import FileRecord

__all__ = [
    "AnalysisRecord",
    "ChatMessageRecord",
    "FileRecord",
    "as_utc",
    "timestamp_column",
    "utcnow",
]
