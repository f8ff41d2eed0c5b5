"""Persistent store contract shared by the embedded, networked and remote engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..core.errors import ValidationError
from ..schemas import (
    MAX_FILE_NAME_LENGTH,
    AnalysisResult,
    BackupResult,
    ChatMessage,
    StoreStats,
    UploadedFile,
)


def validate_new_file(file: UploadedFile) -> None:
    """Reject files the store cannot accept.

    Raises:
        ValidationError: A required field is missing or the name is too long
    """
    if not file.id or not file.name or not file.mime_type:
        raise ValidationError("Invalid file data: missing required fields")
    if len(file.name) > MAX_FILE_NAME_LENGTH:
        raise ValidationError(
            f"File name too long (max {MAX_FILE_NAME_LENGTH} characters)"
        )


class PersistentStore(ABC):
    """Async CRUD over files, analysis results and chat transcripts.

    Every method may raise :class:`~deepdive.core.errors.StoreUnavailableError`
    when the backing engine cannot be reached. Writes that break a constraint
    raise :class:`~deepdive.core.errors.StoreIntegrityError`.
    """

    backend_name = "store"

    async def initialize(self) -> None:
        """Prepare the engine (create tables, open pools). Idempotent."""

    @abstractmethod
    async def health_check(self) -> None:
        """Cheap round trip. Raises ``StoreUnavailableError`` when unhealthy."""

    # Files
    @abstractmethod
    async def list_files(self) -> List[UploadedFile]:
        """All files, newest upload first."""

    @abstractmethod
    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        ...

    @abstractmethod
    async def put_file(self, file: UploadedFile) -> str:
        """Insert a new file and return its id.

        Raises:
            ValidationError: Missing fields or name longer than 255 characters
            DuplicateKeyError: A file with the same id already exists
        """

    @abstractmethod
    async def delete_file(self, file_id: str) -> None:
        """Delete a file with its analyses and chat history. Unknown ids are ignored."""

    @abstractmethod
    async def touch_file_access(self, file_id: str) -> None:
        ...

    # Analysis results
    @abstractmethod
    async def get_latest_analysis(self, file_id: str) -> Optional[AnalysisResult]:
        ...

    @abstractmethod
    async def list_latest_analyses(self) -> Dict[str, AnalysisResult]:
        ...

    @abstractmethod
    async def put_analysis(
        self,
        file_id: str,
        result: AnalysisResult,
        processing_time_ms: Optional[int] = None,
    ) -> int:
        """Append an analysis run and return its row id."""

    @abstractmethod
    async def delete_analyses(self, file_id: str) -> None:
        ...

    # Chat history
    @abstractmethod
    async def get_chat_history(self, file_id: str) -> List[ChatMessage]:
        ...

    @abstractmethod
    async def list_chat_histories(self) -> Dict[str, List[ChatMessage]]:
        ...

    @abstractmethod
    async def replace_chat_history(
        self, file_id: str, messages: Sequence[ChatMessage]
    ) -> None:
        """Swap the whole transcript atomically."""

    @abstractmethod
    async def delete_chat_history(self, file_id: str) -> None:
        ...

    # Maintenance
    @abstractmethod
    async def stats(self) -> StoreStats:
        ...

    @abstractmethod
    async def backup(self, path: Optional[str] = None) -> BackupResult:
        ...

    async def close(self) -> None:
        """Release connections."""


__all__ = ["PersistentStore", "validate_new_file"]
