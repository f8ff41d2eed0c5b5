"""Key/value backends for the fallback cache.

- file: durable JSON document on local disk (default)
- memory: process local, for tests and throwaway sessions
- redis: a local Redis instance
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class CacheBackend(ABC):
    """Cache backend base class."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def close(self) -> None:
        pass


class MemoryCacheBackend(CacheBackend):
    """In-process dictionary guarded by a lock."""

    def __init__(self) -> None:
        self._cache: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._cache.get(key)

    async def set(self, key: str, value: str) -> bool:
        async with self._lock:
            self._cache[key] = value
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def close(self) -> None:
        self._cache.clear()


class FileCacheBackend(CacheBackend):
    """All keys in one JSON object on disk, rewritten atomically on every change.

    An unreadable document is logged and treated as empty; the next write
    replaces it.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Fallback cache file unreadable", path=str(self.path), error=str(e))
            return {}
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            logger.warning("Fallback cache file is corrupt", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Fallback cache file has unexpected shape", path=str(self.path))
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            return data.get(key)

    async def set(self, key: str, value: str) -> bool:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            try:
                await asyncio.to_thread(self._write, data)
            except OSError as e:
                logger.warning("Fallback cache write failed", key=key, error=str(e))
                return False
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return False
            del data[key]
            try:
                await asyncio.to_thread(self._write, data)
            except OSError as e:
                logger.warning("Fallback cache delete failed", key=key, error=str(e))
                return False
            return True


class RedisCacheBackend(CacheBackend):
    """Redis backed cache, connected lazily."""

    def __init__(self, redis_url: str, client: Optional[Any] = None):
        self._redis_url = redis_url
        self._client: Optional[Any] = client

    async def _get_client(self):
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis connection established", url=self._redis_url)
        return self._client

    async def get(self, key: str) -> Optional[str]:
        try:
            client = await self._get_client()
            value = await client.get(key)
        except Exception as e:
            logger.warning("Redis get failed", key=key, error=str(e))
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> bool:
        try:
            client = await self._get_client()
            await client.set(key, value)
            return True
        except Exception as e:
            logger.warning("Redis set failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            client = await self._get_client()
            return await client.delete(key) > 0
        except Exception as e:
            logger.warning("Redis delete failed", key=key, error=str(e))
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = [
    "CacheBackend",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "RedisCacheBackend",
]
