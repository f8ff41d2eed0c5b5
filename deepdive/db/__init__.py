"""Database package for DeepDive."""

from __future__ import annotations

from .models import AnalysisRecord, ChatMessageRecord, FileRecord
from .session import DatabaseManager

__all__ = [
    "AnalysisRecord",
    "ChatMessageRecord",
    "DatabaseManager",
    "FileRecord",
]
