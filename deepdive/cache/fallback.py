"""Degraded-mode copy of the session's files, analyses and chats."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..schemas import AnalysisResult, ChatMessage, UploadedFile
from .backends import CacheBackend

logger = structlog.get_logger(__name__)

FILES_KEY = "deepdive-trading-files"
REPORTS_KEY = "deepdive-trading-reports"
CHATS_KEY = "deepdive-trading-chats"
ALL_KEYS = (FILES_KEY, REPORTS_KEY, CHATS_KEY)


@dataclass
class FallbackSnapshot:
    files: List[UploadedFile] = field(default_factory=list)
    analyses: Dict[str, AnalysisResult] = field(default_factory=dict)
    chat_histories: Dict[str, List[ChatMessage]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.files or self.analyses or self.chat_histories)


class FallbackCache:
    """Three JSON blobs under fixed keys in a :class:`CacheBackend`.

    Loading never raises: a missing, unparseable or mistyped blob reads as
    empty and is logged.
    """

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    async def _load_json(self, key: str) -> Any:
        raw = await self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Fallback cache entry is corrupt, ignoring it", key=key, error=str(e))
            return None

    async def load_files(self) -> List[UploadedFile]:
        data = await self._load_json(FILES_KEY)
        if not isinstance(data, list):
            return []
        files: List[UploadedFile] = []
        for item in data:
            try:
                files.append(UploadedFile.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed cached file", error=str(e))
        return files

    async def load_analyses(self) -> Dict[str, AnalysisResult]:
        data = await self._load_json(REPORTS_KEY)
        if not isinstance(data, dict):
            return {}
        analyses: Dict[str, AnalysisResult] = {}
        for file_id, item in data.items():
            try:
                analyses[file_id] = AnalysisResult.model_validate(item)
            except PydanticValidationError as e:
                logger.warning("Skipping malformed cached analysis", file_id=file_id, error=str(e))
        return analyses

    async def load_chat_histories(self) -> Dict[str, List[ChatMessage]]:
        data = await self._load_json(CHATS_KEY)
        if not isinstance(data, dict):
            return {}
        histories: Dict[str, List[ChatMessage]] = {}
        for file_id, messages in data.items():
            if not isinstance(messages, list):
                continue
            try:
                histories[file_id] = [ChatMessage.model_validate(m) for m in messages]
            except PydanticValidationError as e:
                logger.warning("Skipping malformed cached chat", file_id=file_id, error=str(e))
        return histories

    async def load(self) -> FallbackSnapshot:
        return FallbackSnapshot(
            files=await self.load_files(),
            analyses=await self.load_analyses(),
            chat_histories=await self.load_chat_histories(),
        )

    async def save_files(self, files: Sequence[UploadedFile]) -> None:
        payload = [file.to_wire() for file in files]
        await self._save(FILES_KEY, payload)

    async def save_analyses(self, analyses: Mapping[str, AnalysisResult]) -> None:
        payload = {file_id: result.to_wire() for file_id, result in analyses.items()}
        await self._save(REPORTS_KEY, payload)

    async def save_chat_histories(self, histories: Mapping[str, Sequence[ChatMessage]]) -> None:
        payload = {
            file_id: [message.model_dump() for message in messages]
            for file_id, messages in histories.items()
        }
        await self._save(CHATS_KEY, payload)

    async def save(self, snapshot: FallbackSnapshot) -> None:
        await self.save_files(snapshot.files)
        await self.save_analyses(snapshot.analyses)
        await self.save_chat_histories(snapshot.chat_histories)

    async def _save(self, key: str, payload: Any) -> None:
        if not await self.backend.set(key, json.dumps(payload)):
            logger.warning("Fallback cache write was not persisted", key=key)

    async def is_empty(self) -> bool:
        return (await self.load()).is_empty

    async def clear(self) -> None:
        for key in ALL_KEYS:
            await self.backend.delete(key)
        logger.info("Fallback cache cleared")

    async def close(self) -> None:
        await self.backend.close()


__all__ = [
    "ALL_KEYS",
    "CHATS_KEY",
    "FILES_KEY",
    "FallbackCache",
    "FallbackSnapshot",
    "REPORTS_KEY",
]
