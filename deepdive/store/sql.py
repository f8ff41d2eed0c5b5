"""Relational store engines: embedded SQLite and networked PostgreSQL."""

from __future__ import annotations

import asyncio
import json
import os
import time
from abc import abstractmethod
from contextlib import asynccontextmanager, nullcontext
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import (
    DeepDiveError,
    DuplicateKeyError,
    StoreError,
    StoreIntegrityError,
    StoreUnavailableError,
)
from ..db import AnalysisRecord, ChatMessageRecord, DatabaseManager, FileRecord
from ..db.models import as_utc, utcnow
from ..repositories import (
    AnalysisResultRepository,
    ChatMessageRepository,
    FileRepository,
)
from ..schemas import (
    AnalysisResult,
    BackupResult,
    ChartData,
    ChatMessage,
    StoreStats,
    UploadedFile,
)
from .base import PersistentStore, validate_new_file

logger = structlog.get_logger(__name__)


def format_size(size_bytes: int) -> str:
    """Human readable size: ``512 B``, ``1.5 KB``, ``2.0 MB``."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def file_from_record(record: FileRecord) -> UploadedFile:
    return UploadedFile(
        id=record.id,
        name=record.name,
        mime_type=record.mime_type,
        content=record.content,
        is_binary=record.is_binary,
        size_bytes=record.file_size,
        uploaded_at=as_utc(record.upload_date),
        last_accessed_at=as_utc(record.last_accessed),
    )


def analysis_from_record(record: AnalysisRecord) -> AnalysisResult:
    chart_data: Optional[ChartData] = None
    if record.chart_data is not None:
        try:
            chart_data = ChartData.model_validate(record.chart_data)
        except PydanticValidationError:
            logger.warning(
                "Stored chart data is malformed, dropping it",
                file_id=record.file_id,
                analysis_id=record.id,
            )
    return AnalysisResult(
        markdown_report=record.markdown_report,
        chart_data=chart_data,
        suggested_questions=list(record.suggested_questions or []),
        file_id=record.file_id,
        analyzed_at=as_utc(record.analysis_date),
        processing_time_ms=record.processing_time_ms,
    )


def message_from_record(record: ChatMessageRecord) -> ChatMessage:
    return ChatMessage(role=record.role, text=record.message_text)


class SQLStore(PersistentStore):
    """Store over SQLModel tables. Engine specifics live in the subclasses."""

    backend_name = "sql"

    def __init__(self, db: DatabaseManager, *, backup_dir: str = "./backups") -> None:
        self.db = db
        self.backup_dir = backup_dir
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session scope translating driver errors into store errors."""
        try:
            async with self.db.session_scope() as session:
                yield session
        except DeepDiveError:
            raise
        except IntegrityError as exc:
            raise StoreIntegrityError(
                details={"operation": operation, "error": str(exc.orig)}
            ) from exc
        except (OperationalError, InterfaceError, OSError, asyncio.TimeoutError) as exc:
            logger.error("Store unreachable", backend=self.backend_name, operation=operation, error=str(exc))
            raise StoreUnavailableError(
                details={"operation": operation, "backend": self.backend_name}
            ) from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise StoreUnavailableError(
                    details={"operation": operation, "backend": self.backend_name}
                ) from exc
            raise StoreError(details={"operation": operation, "error": str(exc.orig)}) from exc
        except SQLAlchemyError as exc:
            raise StoreError(details={"operation": operation, "error": str(exc)}) from exc

    def _write_guard(self):
        return nullcontext()

    async def initialize(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            try:
                await self.db.create_tables()
            except (OperationalError, InterfaceError, OSError, DBAPIError) as exc:
                raise StoreUnavailableError(
                    details={"operation": "initialize", "backend": self.backend_name}
                ) from exc
            self._initialized = True
            logger.info("Store initialized", backend=self.backend_name)

    async def health_check(self) -> None:
        await self.initialize()
        async with self._session("health_check") as session:
            await session.execute(text("SELECT 1"))

    # Files
    async def list_files(self) -> List[UploadedFile]:
        async with self._session("list_files") as session:
            records = await FileRepository(session).list_newest_first()
            return [file_from_record(record) for record in records]

    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        async with self._session("get_file") as session:
            record = await FileRepository(session).get(file_id)
            return file_from_record(record) if record else None

    async def put_file(self, file: UploadedFile) -> str:
        validate_new_file(file)
        now = utcnow()
        record = FileRecord(
            id=file.id,
            name=file.name,
            mime_type=file.mime_type,
            content=file.content,
            is_binary=file.is_binary,
            file_size=(
                file.size_bytes
                if file.size_bytes is not None
                else len(file.content.encode("utf-8"))
            ),
            upload_date=as_utc(file.uploaded_at) or now,
            last_accessed=as_utc(file.last_accessed_at) or now,
        )
        async with self._write_guard():
            try:
                async with self._session("put_file") as session:
                    repository = FileRepository(session)
                    if await repository.exists(file.id):
                        raise DuplicateKeyError(details={"id": file.id})
                    await repository.create(record)
            except StoreIntegrityError as exc:
                if isinstance(exc, DuplicateKeyError):
                    raise
                raise DuplicateKeyError(details={"id": file.id, **exc.details}) from exc
        logger.info("File stored", file_id=file.id, size=record.file_size)
        return file.id

    async def delete_file(self, file_id: str) -> None:
        async with self._write_guard():
            async with self._session("delete_file") as session:
                await AnalysisResultRepository(session).delete_for_file(file_id)
                await ChatMessageRepository(session).delete_for_file(file_id)
                deleted = await FileRepository(session).delete(file_id)
        logger.info("File deleted", file_id=file_id, existed=deleted)

    async def touch_file_access(self, file_id: str) -> None:
        async with self._write_guard():
            async with self._session("touch_file_access") as session:
                await FileRepository(session).touch(file_id, utcnow())

    # Analysis results
    async def get_latest_analysis(self, file_id: str) -> Optional[AnalysisResult]:
        async with self._session("get_latest_analysis") as session:
            record = await AnalysisResultRepository(session).latest_for_file(file_id)
            return analysis_from_record(record) if record else None

    async def list_latest_analyses(self) -> Dict[str, AnalysisResult]:
        async with self._session("list_latest_analyses") as session:
            latest = await AnalysisResultRepository(session).latest_per_file()
            return {file_id: analysis_from_record(record) for file_id, record in latest.items()}

    async def put_analysis(
        self,
        file_id: str,
        result: AnalysisResult,
        processing_time_ms: Optional[int] = None,
    ) -> int:
        record = AnalysisRecord(
            file_id=file_id,
            markdown_report=result.markdown_report,
            chart_data=(
                result.chart_data.model_dump(by_alias=True, mode="json")
                if result.chart_data is not None
                else None
            ),
            suggested_questions=list(result.suggested_questions),
            analysis_date=utcnow(),
            processing_time_ms=(
                processing_time_ms
                if processing_time_ms is not None
                else result.processing_time_ms
            ),
        )
        async with self._write_guard():
            async with self._session("put_analysis") as session:
                await AnalysisResultRepository(session).create(record)
                # Analysing a file counts as accessing it.
                await FileRepository(session).touch(file_id, record.analysis_date)
                record_id = record.id
        logger.info(
            "Analysis stored",
            file_id=file_id,
            analysis_id=record_id,
            processing_time_ms=record.processing_time_ms,
        )
        return int(record_id)

    async def delete_analyses(self, file_id: str) -> None:
        async with self._write_guard():
            async with self._session("delete_analyses") as session:
                await AnalysisResultRepository(session).delete_for_file(file_id)

    # Chat history
    async def get_chat_history(self, file_id: str) -> List[ChatMessage]:
        async with self._session("get_chat_history") as session:
            records = await ChatMessageRepository(session).history(file_id)
            return [message_from_record(record) for record in records]

    async def list_chat_histories(self) -> Dict[str, List[ChatMessage]]:
        async with self._session("list_chat_histories") as session:
            grouped = await ChatMessageRepository(session).histories()
            return {
                file_id: [message_from_record(record) for record in records]
                for file_id, records in grouped.items()
            }

    async def replace_chat_history(
        self, file_id: str, messages: Sequence[ChatMessage]
    ) -> None:
        snapshot = [ChatMessage(role=m.role, text=m.text) for m in messages]
        async with self._write_guard():
            async with self._session("replace_chat_history") as session:
                await ChatMessageRepository(session).replace(file_id, snapshot)
        logger.debug("Chat history replaced", file_id=file_id, messages=len(snapshot))

    async def delete_chat_history(self, file_id: str) -> None:
        async with self._write_guard():
            async with self._session("delete_chat_history") as session:
                await ChatMessageRepository(session).delete_for_file(file_id)

    # Maintenance
    async def _counts(self, session: AsyncSession) -> Dict[str, int]:
        return {
            "file_count": await FileRepository(session).count(),
            "analysis_count": await AnalysisResultRepository(session).count(),
            "message_count": await ChatMessageRepository(session).count(),
        }

    @abstractmethod
    async def _storage_size(self, session: AsyncSession) -> str:
        """Human readable size of the backing database."""

    async def stats(self) -> StoreStats:
        async with self._session("stats") as session:
            counts = await self._counts(session)
            size = await self._storage_size(session)
        return StoreStats(storage_size=size, **counts)

    def _default_backup_path(self, suffix: str) -> Path:
        return Path(self.backup_dir) / f"backup-{int(time.time() * 1000)}{suffix}"

    async def close(self) -> None:
        await self.db.close()
        self._initialized = False


class SQLiteStore(SQLStore):
    """Embedded single-file engine. Writes are serialized; SQLite has one writer."""

    backend_name = "sqlite"

    def __init__(self, db: DatabaseManager, *, backup_dir: str = "./backups") -> None:
        super().__init__(db, backup_dir=backup_dir)
        self._write_lock = asyncio.Lock()
        database = make_url(db.database_url).database
        self.database_path: Optional[str] = (
            database if database and database != ":memory:" else None
        )

    def _write_guard(self):
        return self._write_lock

    async def initialize(self) -> None:
        if self.database_path:
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
        await super().initialize()

    async def _storage_size(self, session: AsyncSession) -> str:
        if not self.database_path:
            return format_size(0)
        try:
            return format_size(os.path.getsize(self.database_path))
        except OSError as exc:
            logger.warning("Could not get database size", path=self.database_path, error=str(exc))
            return format_size(0)

    async def backup(self, path: Optional[str] = None) -> BackupResult:
        """Copy the database with ``VACUUM INTO``. The target must not exist yet."""
        target = Path(path) if path else self._default_backup_path(".db")
        target.parent.mkdir(parents=True, exist_ok=True)
        quoted = str(target).replace("'", "''")
        async with self._write_lock:
            try:
                async with self.db.engine.connect() as conn:
                    conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                    await conn.exec_driver_sql(f"VACUUM INTO '{quoted}'")
            except (OperationalError, OSError) as exc:
                raise StoreError(
                    "Failed to create backup",
                    details={"path": str(target), "error": str(exc)},
                ) from exc
        logger.info("Database backup created", path=str(target))
        return BackupResult(message="Database backup created", path=str(target))


class PostgresStore(SQLStore):
    """Networked engine over asyncpg. Structured columns are JSONB."""

    backend_name = "postgresql"

    async def _storage_size(self, session: AsyncSession) -> str:
        result = await session.execute(
            text("SELECT pg_size_pretty(pg_database_size(current_database()))")
        )
        return str(result.scalar_one())

    async def backup(self, path: Optional[str] = None) -> BackupResult:
        """Write a JSON export of the three tables. Full backups belong to pg_dump."""
        target = Path(path) if path else self._default_backup_path(".json")
        async with self._session("backup") as session:
            files = (await session.execute(select(FileRecord))).scalars().all()
            analyses = (await session.execute(select(AnalysisRecord))).scalars().all()
            messages = (await session.execute(select(ChatMessageRecord))).scalars().all()
            counts = await self._counts(session)
        export: Dict[str, Any] = {
            "timestamp": utcnow().isoformat(),
            "database": "postgresql",
            "stats": counts,
            "files": [record.model_dump(mode="json") for record in files],
            "analysis_results": [record.model_dump(mode="json") for record in analyses],
            "chat_messages": [record.model_dump(mode="json") for record in messages],
        }

        def write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(export, indent=2), encoding="utf-8")

        try:
            await asyncio.to_thread(write)
        except OSError as exc:
            raise StoreError(
                "Failed to create backup",
                details={"path": str(target), "error": str(exc)},
            ) from exc
        logger.info("PostgreSQL export written; use pg_dump for full backups", path=str(target))
        return BackupResult(message="Database backup created", path=str(target))


__all__ = [
    "PostgresStore",
    "SQLStore",
    "SQLiteStore",
    "analysis_from_record",
    "file_from_record",
    "format_size",
]
