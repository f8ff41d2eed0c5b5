"""Store client speaking the DeepDive store HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import structlog
from fastapi import status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import (
    DuplicateKeyError,
    ResourceNotFoundError,
    StoreIntegrityError,
    StoreProtocolError,
    StoreResponseError,
    ValidationError,
)
from ..schemas import (
    AnalysisResult,
    BackupResult,
    ChatMessage,
    StoreStats,
    UploadedFile,
)
from .base import PersistentStore, validate_new_file
from .transport import ResilientTransport

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _segment(value: str) -> str:
    return quote(value, safe="")


def _malformed(path: str, **details: Any) -> StoreProtocolError:
    logger.error("Store API returned an unexpected body", path=path, **details)
    return StoreProtocolError(details={"path": path, **details})


def _parse(model: Type[M], payload: Any, path: str) -> M:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise _malformed(path, model=model.__name__, error_count=exc.error_count()) from exc


def _expect(payload: Any, kind: type, path: str) -> Any:
    if not isinstance(payload, kind):
        raise _malformed(path, expected=kind.__name__, received=type(payload).__name__)
    return payload


def _translate(exc: StoreResponseError) -> Exception:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return ResourceNotFoundError(exc.message, details=exc.details)
    if exc.status_code == status.HTTP_409_CONFLICT:
        return DuplicateKeyError(exc.message, details=exc.details)
    if exc.status_code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    ):
        return ValidationError(exc.message, details=exc.details)
    return exc


class RemoteStore(PersistentStore):
    """:class:`PersistentStore` over HTTP. Every call goes through the resilient transport.

    Bodies that do not match the expected shape raise
    :class:`~deepdive.core.errors.StoreProtocolError`, which callers treat
    like an unreachable store.
    """

    backend_name = "remote"

    def __init__(self, transport: ResilientTransport) -> None:
        self.transport = transport

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            return await self.transport.request(method, path, **kwargs)
        except StoreResponseError as exc:
            translated = _translate(exc)
            if translated is exc:
                raise
            raise translated from exc

    async def _get_optional(self, path: str) -> Any:
        try:
            return await self._call("GET", path)
        except ResourceNotFoundError:
            return None

    async def health_check(self) -> None:
        await self._call("GET", "/health")

    # Files
    async def list_files(self) -> List[UploadedFile]:
        payload = _expect(await self._call("GET", "/files") or [], list, "/files")
        return [_parse(UploadedFile, item, "/files") for item in payload]

    async def get_file(self, file_id: str) -> Optional[UploadedFile]:
        path = f"/files/{_segment(file_id)}"
        payload = await self._get_optional(path)
        return _parse(UploadedFile, payload, path) if payload else None

    async def put_file(self, file: UploadedFile) -> str:
        validate_new_file(file)
        payload = _expect(
            await self._call("POST", "/files", json=file.to_wire()) or {}, dict, "/files"
        )
        return str(payload.get("id") or file.id)

    async def delete_file(self, file_id: str) -> None:
        await self._call("DELETE", f"/files/{_segment(file_id)}")

    async def touch_file_access(self, file_id: str) -> None:
        await self._call("PUT", f"/files/{_segment(file_id)}/access")

    # Analysis results
    async def get_latest_analysis(self, file_id: str) -> Optional[AnalysisResult]:
        path = f"/analysis/{_segment(file_id)}"
        payload = await self._get_optional(path)
        return _parse(AnalysisResult, payload, path) if payload else None

    async def list_latest_analyses(self) -> Dict[str, AnalysisResult]:
        payload = _expect(await self._call("GET", "/analysis") or {}, dict, "/analysis")
        return {
            file_id: _parse(AnalysisResult, item, "/analysis")
            for file_id, item in payload.items()
        }

    async def put_analysis(
        self,
        file_id: str,
        result: AnalysisResult,
        processing_time_ms: Optional[int] = None,
    ) -> int:
        body = {
            "fileId": file_id,
            "result": result.to_wire(),
            "processingTimeMs": processing_time_ms,
        }
        try:
            payload = await self._call("POST", "/analysis", json=body)
        except DuplicateKeyError as exc:
            # 409 here means the file row is missing, not a duplicate.
            raise StoreIntegrityError(exc.message, details=exc.details) from exc
        row_id = _expect(payload or {}, dict, "/analysis").get("id", 0)
        if isinstance(row_id, bool) or not isinstance(row_id, int):
            raise _malformed("/analysis", expected="int", received=type(row_id).__name__)
        return row_id

    async def delete_analyses(self, file_id: str) -> None:
        await self._call("DELETE", f"/analysis/{_segment(file_id)}")

    # Chat history
    async def get_chat_history(self, file_id: str) -> List[ChatMessage]:
        path = f"/chat/{_segment(file_id)}"
        payload = _expect(await self._call("GET", path) or [], list, path)
        return [_parse(ChatMessage, item, path) for item in payload]

    async def list_chat_histories(self) -> Dict[str, List[ChatMessage]]:
        payload = _expect(await self._call("GET", "/chat") or {}, dict, "/chat")
        return {
            file_id: [
                _parse(ChatMessage, item, "/chat")
                for item in _expect(messages, list, "/chat")
            ]
            for file_id, messages in payload.items()
        }

    async def replace_chat_history(
        self, file_id: str, messages: Sequence[ChatMessage]
    ) -> None:
        body = {"messages": [message.model_dump() for message in messages]}
        await self._call("POST", f"/chat/{_segment(file_id)}", json=body)

    async def delete_chat_history(self, file_id: str) -> None:
        await self._call("DELETE", f"/chat/{_segment(file_id)}")

    # Maintenance
    async def stats(self) -> StoreStats:
        return _parse(StoreStats, await self._call("GET", "/stats") or {}, "/stats")

    async def backup(self, path: Optional[str] = None) -> BackupResult:
        payload = await self._call("POST", "/backup", json={"backupPath": path})
        return _parse(
            BackupResult, payload or {"message": "Database backup created"}, "/backup"
        )

    async def close(self) -> None:
        await self.transport.close()


__all__ = ["RemoteStore"]
