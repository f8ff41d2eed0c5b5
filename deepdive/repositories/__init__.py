"""Repository layer for database operations."""

from .analysis_result import AnalysisResultRepository
from .base import BaseRepository
from .chat_message import ChatMessageRepository
from .file import FileRepository

__all__ = [
    "AnalysisResultRepository",
    "BaseRepository",
    "ChatMessageRepository",
    "FileRepository",
]
