"""Session state controller.

Keeps the in-memory session consistent with the persistent store and, when the
store is unreachable, with the fallback cache. All operations read explicit
snapshots of the state they need at call time, so a slow analyze or chat call
never writes into another file's entries.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

import structlog

from ..cache import FallbackCache, FallbackSnapshot
from ..core.errors import (
    DeepDiveError,
    DuplicateKeyError,
    StoreUnavailableError,
    ValidationError,
)
from ..schemas import AnalysisResult, ChatMessage, UploadedFile
from ..store import PersistentStore, validate_new_file
from .analysis import AnalysisService
from .chat import ChatService
from .session_state import BackendMode, SessionState
from .stream_accumulator import StreamAccumulator

logger = structlog.get_logger(__name__)

ANALYSIS_ERROR_MESSAGE = (
    "An error occurred during analysis. "
    "Please check your API key configuration and try again."
)
CHAT_ERROR_MESSAGE = "An error occurred during chat. Please try again."


@dataclass
class MigrationReport:
    """Outcome of replaying the fallback cache into the store."""

    files: int = 0
    analyses: int = 0
    chats: int = 0
    failures: List[str] = field(default_factory=list)


class SessionController:
    """Drives one session: startup, uploads, selection, deletes, analysis and chat.

    Operational failures never raise out of the public operations; they are
    recorded as a single message in ``state.last_error``. Without an
    ``analyzer`` or ``chat_service`` (no API key configured) the matching
    operations fail the same way.
    """

    def __init__(
        self,
        store: PersistentStore,
        fallback: FallbackCache,
        analyzer: Optional[AnalysisService],
        chat_service: Optional[ChatService],
        *,
        recovery_enabled: bool = True,
        recovery_interval: float = 30.0,
    ) -> None:
        self.store = store
        self.fallback = fallback
        self.analyzer = analyzer
        self.chat_service = chat_service
        self.recovery_enabled = recovery_enabled
        self.recovery_interval = recovery_interval
        self.state = SessionState()
        self._last_recovery_attempt: Optional[float] = None

    # Helpers
    @property
    def connected(self) -> bool:
        return self.state.mode is BackendMode.CONNECTED

    def snapshot(self) -> SessionState:
        """Deep copy of the state for display layers."""
        return self.state.copy()

    async def _best_effort(
        self, action: str, call: Callable[[], Awaitable[object]], **context: object
    ) -> bool:
        try:
            await call()
        except DeepDiveError as exc:
            logger.warning("Best-effort store write failed", action=action, error=exc.message, **context)
            return False
        return True

    def _set_history(self, file_id: str, messages: List[ChatMessage]) -> None:
        histories = dict(self.state.chat_histories)
        histories[file_id] = list(messages)
        self.state.chat_histories = histories

    def _apply_selection(self, file_id: Optional[str]) -> None:
        self.state.selected_file_id = file_id
        self.state.current_result = self.state.analyses.get(file_id) if file_id else None

    async def _reload_files(self) -> None:
        self.state.files = await self.store.list_files()

    async def _reload_all(self) -> None:
        files = await self.store.list_files()
        analyses = await self.store.list_latest_analyses()
        histories = await self.store.list_chat_histories()
        self.state.files = files
        self.state.analyses = analyses
        self.state.chat_histories = histories
        if self.state.selected_file_id is not None:
            self.state.current_result = analyses.get(self.state.selected_file_id)

    def _load_snapshot(self, snapshot: FallbackSnapshot) -> None:
        self.state.files = list(snapshot.files)
        self.state.analyses = dict(snapshot.analyses)
        self.state.chat_histories = {k: list(v) for k, v in snapshot.chat_histories.items()}

    def _session_snapshot(self) -> FallbackSnapshot:
        return FallbackSnapshot(
            files=list(self.state.files),
            analyses=dict(self.state.analyses),
            chat_histories={k: list(v) for k, v in self.state.chat_histories.items()},
        )

    async def _write_through(self) -> None:
        await self.fallback.save(self._session_snapshot())

    def _enter_degraded(self, reason: str) -> None:
        self.state.mode = BackendMode.DEGRADED
        self._last_recovery_attempt = time.monotonic()
        logger.warning("Store unreachable, running on the fallback cache", reason=reason)

    # Startup and recovery
    async def start(self) -> Optional[MigrationReport]:
        """Connect to the store or fall back to the cache. Runs once."""
        if self.state.mode is not BackendMode.UNINITIALIZED:
            return None

        try:
            await self.store.health_check()
        except DeepDiveError as exc:
            self._enter_degraded(exc.message)
            self._load_snapshot(await self.fallback.load())
            logger.info("Session loaded from fallback cache", files=len(self.state.files))
            return None

        try:
            await self._reload_all()
            report = None
            if not self.state.files:
                cached = await self.fallback.load()
                if not cached.is_empty:
                    report = await self._migrate(cached)
                    await self._reload_all()
                    await self.fallback.clear()
        except DeepDiveError as exc:
            self._enter_degraded(exc.message)
            self._load_snapshot(await self.fallback.load())
            return None

        self.state.mode = BackendMode.CONNECTED
        logger.info(
            "Session loaded from store",
            backend=self.store.backend_name,
            files=len(self.state.files),
            migrated=report.files if report else 0,
        )
        return report

    async def _migrate(self, snapshot: FallbackSnapshot) -> MigrationReport:
        """Replay cached data into the store.

        Individual rejections are logged and skipped. Losing the store midway
        raises ``StoreUnavailableError`` so the caller can stay on the cache.
        """
        report = MigrationReport()

        for file in snapshot.files:
            try:
                await self.store.put_file(file)
                report.files += 1
            except DuplicateKeyError:
                logger.info("Migration skipped existing file", file_id=file.id)
            except StoreUnavailableError:
                raise
            except DeepDiveError as exc:
                report.failures.append(f"file {file.id}: {exc.message}")
                logger.warning("Migration failed for file", file_id=file.id, error=exc.message)

        for file_id, result in snapshot.analyses.items():
            try:
                await self.store.put_analysis(file_id, result, result.processing_time_ms)
                report.analyses += 1
            except StoreUnavailableError:
                raise
            except DeepDiveError as exc:
                report.failures.append(f"analysis {file_id}: {exc.message}")
                logger.warning("Migration failed for analysis", file_id=file_id, error=exc.message)

        for file_id, messages in snapshot.chat_histories.items():
            try:
                await self.store.replace_chat_history(file_id, messages)
                report.chats += 1
            except StoreUnavailableError:
                raise
            except DeepDiveError as exc:
                report.failures.append(f"chat {file_id}: {exc.message}")
                logger.warning("Migration failed for chat", file_id=file_id, error=exc.message)

        logger.info(
            "Fallback cache migrated",
            files=report.files,
            analyses=report.analyses,
            chats=report.chats,
            failures=len(report.failures),
        )
        return report

    async def retry_connection(self, *, force: bool = True) -> bool:
        """Try to leave degraded mode.

        On a healthy store the session's data is replayed into it, the session
        is reloaded from the store and the cache is cleared. Unless ``force``
        is set, attempts are throttled to one per ``recovery_interval``.
        """
        if self.state.mode is BackendMode.UNINITIALIZED:
            await self.start()
            return self.connected
        if self.connected:
            return True

        now = time.monotonic()
        if (
            not force
            and self._last_recovery_attempt is not None
            and now - self._last_recovery_attempt < self.recovery_interval
        ):
            return False
        self._last_recovery_attempt = now

        try:
            await self.store.health_check()
        except DeepDiveError as exc:
            logger.info("Store still unreachable", error=exc.message)
            return False

        snapshot = self._session_snapshot()
        await self.fallback.save(snapshot)
        try:
            await self._migrate(snapshot)
            await self._reload_all()
        except DeepDiveError as exc:
            logger.warning("Recovery aborted, staying on fallback cache", error=exc.message)
            self._load_snapshot(snapshot)
            return False

        await self.fallback.clear()
        self.state.mode = BackendMode.CONNECTED
        logger.info("Store reachable again, session reconnected", files=len(self.state.files))
        return True

    async def _maybe_recover(self) -> None:
        if self.state.mode is BackendMode.DEGRADED and self.recovery_enabled:
            await self.retry_connection(force=False)

    # Files
    async def upload_file(self, file: UploadedFile) -> Optional[UploadedFile]:
        """Store a new file and select it. Returns the stored file, or None on failure."""
        try:
            validate_new_file(file)
        except ValidationError as exc:
            self.state.last_error = exc.message
            return None

        await self._maybe_recover()

        if self.connected:
            try:
                await self.store.put_file(file)
                await self._reload_files()
            except DeepDiveError as exc:
                logger.error("Upload failed", file_id=file.id, error=exc.message)
                self.state.last_error = exc.message
                return None
            stored = next((f for f in self.state.files if f.id == file.id), file)
        else:
            if any(f.id == file.id for f in self.state.files):
                self.state.last_error = DuplicateKeyError.default_message
                return None
            stored = file.model_copy(
                update={
                    "size_bytes": (
                        file.size_bytes
                        if file.size_bytes is not None
                        else len(file.content.encode("utf-8"))
                    ),
                    "uploaded_at": file.uploaded_at or datetime.now(timezone.utc),
                }
            )
            self.state.files = [*self.state.files, stored]
            await self.fallback.save_files(self.state.files)

        self.state.selected_file_id = stored.id
        self.state.current_result = None
        self.state.last_error = None
        logger.info("File uploaded", file_id=stored.id, mode=self.state.mode.value)
        return stored

    async def select_file(self, file_id: str) -> bool:
        if not any(f.id == file_id for f in self.state.files):
            logger.warning("Selected file is not loaded", file_id=file_id)
            return False
        self._apply_selection(file_id)
        self.state.last_error = None
        if self.connected:
            await self._best_effort(
                "touch_file_access",
                lambda: self.store.touch_file_access(file_id),
                file_id=file_id,
            )
        return True

    async def delete_file(self, file_id: str) -> bool:
        await self._maybe_recover()

        if self.connected:
            try:
                await self.store.delete_file(file_id)
                await self._reload_all()
            except DeepDiveError as exc:
                logger.error("Delete failed", file_id=file_id, error=exc.message)
                self.state.last_error = exc.message
                return False
        else:
            self.state.files = [f for f in self.state.files if f.id != file_id]
            self.state.analyses = {k: v for k, v in self.state.analyses.items() if k != file_id}
            self.state.chat_histories = {
                k: v for k, v in self.state.chat_histories.items() if k != file_id
            }
            await self._write_through()

        if self.state.selected_file_id == file_id:
            remaining = self.state.files
            self._apply_selection(remaining[0].id if remaining else None)
            self.state.last_error = None
        return True

    # Analysis
    async def analyze(self) -> Optional[AnalysisResult]:
        """Analyse the selected file. A call while one is in flight is ignored."""
        file = self.state.selected_file
        if file is None or self.state.is_analyzing:
            return None
        if self.analyzer is None:
            logger.error("No analysis service configured", file_id=file.id)
            self.state.last_error = ANALYSIS_ERROR_MESSAGE
            return None

        self.state.is_analyzing = True
        try:
            await self._maybe_recover()
            file_id = file.id
            self.state.last_error = None

            # Re-analysis starts a fresh conversation.
            self._set_history(file_id, [])
            if self.connected:
                await self._best_effort(
                    "delete_chat_history",
                    lambda: self.store.delete_chat_history(file_id),
                    file_id=file_id,
                )
            else:
                await self.fallback.save_chat_histories(self.state.chat_histories)

            started = time.perf_counter()
            try:
                result = await self.analyzer.analyze(file)
            except Exception as exc:
                logger.error("Analysis failed", file_id=file_id, error=str(exc))
                self.state.last_error = ANALYSIS_ERROR_MESSAGE
                return None
            elapsed_ms = int((time.perf_counter() - started) * 1000)

            result = result.model_copy(
                update={
                    "file_id": file_id,
                    "analyzed_at": datetime.now(timezone.utc),
                    "processing_time_ms": elapsed_ms,
                }
            )
            self.state.analyses = {**self.state.analyses, file_id: result}
            if self.state.selected_file_id == file_id:
                self.state.current_result = result

            if self.connected:
                stored = await self._best_effort(
                    "put_analysis",
                    lambda: self.store.put_analysis(file_id, result, elapsed_ms),
                    file_id=file_id,
                )
                if not stored:
                    await self.fallback.save_analyses(self.state.analyses)
            else:
                await self.fallback.save_analyses(self.state.analyses)

            logger.info("Analysis complete", file_id=file_id, processing_time_ms=elapsed_ms)
            return result
        finally:
            self.state.is_analyzing = False

    # Chat
    async def _persist_history(self, file_id: str, messages: List[ChatMessage]) -> None:
        if self.connected:
            await self._best_effort(
                "replace_chat_history",
                lambda: self.store.replace_chat_history(file_id, messages),
                file_id=file_id,
            )
        else:
            await self.fallback.save_chat_histories(self.state.chat_histories)

    async def send_message(self, text: str) -> Optional[str]:
        """Ask a follow-up question about the selected file's analysis.

        Returns the model's full reply, or None when the message was not sent
        or the chat call failed.
        """
        file = self.state.selected_file
        if file is None or self.state.is_chatting or not text or not text.strip():
            return None
        result = self.state.analyses.get(file.id)
        if result is None:
            return None
        if self.chat_service is None:
            self.state.last_error = CHAT_ERROR_MESSAGE
            return None

        self.state.is_chatting = True
        try:
            await self._maybe_recover()
            file_id = file.id
            report = result.markdown_report
            optimistic = [*self.state.chat_history(file_id), ChatMessage(role="user", text=text)]
            self._set_history(file_id, optimistic)
            self.state.last_error = None

            accumulator = StreamAccumulator(
                optimistic,
                on_update=lambda messages: self._set_history(file_id, messages),
            )
            try:
                reply = await accumulator.consume(
                    self.chat_service.stream_reply(file, report, list(optimistic), text)
                )
            except Exception as exc:
                logger.error("Chat failed", file_id=file_id, error=str(exc))
                accumulator.discard()
                self._set_history(file_id, optimistic)
                self.state.last_error = CHAT_ERROR_MESSAGE
                await self._persist_history(file_id, optimistic)
                return None

            final = accumulator.messages
            self._set_history(file_id, final)
            await self._persist_history(file_id, final)
            return reply
        finally:
            self.state.is_chatting = False

    async def close(self) -> None:
        await self.store.close()
        await self.fallback.close()


__all__ = [
    "ANALYSIS_ERROR_MESSAGE",
    "CHAT_ERROR_MESSAGE",
    "MigrationReport",
    "SessionController",
]
