"""Fallback cache used while the persistent store is unreachable."""

from __future__ import annotations

from ..config.settings import Settings
from .backends import CacheBackend, FileCacheBackend, MemoryCacheBackend, RedisCacheBackend
from .fallback import (
    CHATS_KEY,
    FILES_KEY,
    REPORTS_KEY,
    FallbackCache,
    FallbackSnapshot,
)


def create_fallback_cache(settings: Settings) -> FallbackCache:
    """Fallback cache on the backend named by ``FALLBACK_CACHE_BACKEND``."""
    backend: CacheBackend
    if settings.fallback_cache_backend == "memory":
        backend = MemoryCacheBackend()
    elif settings.fallback_cache_backend == "redis":
        backend = RedisCacheBackend(settings.redis_url)
    else:
        backend = FileCacheBackend(settings.fallback_cache_path)
    return FallbackCache(backend)


__all__ = [
    "CHATS_KEY",
    "CacheBackend",
    "FILES_KEY",
    "FallbackCache",
    "FallbackSnapshot",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "REPORTS_KEY",
    "RedisCacheBackend",
    "create_fallback_cache",
]
