"""Store HTTP API routes."""

from fastapi import APIRouter

from .analysis import router as analysis_router
from .backup import router as backup_router
from .chat import router as chat_router
from .files import router as files_router
from .health import router as health_router

API_PREFIX = "/api"


def get_api_router() -> APIRouter:
    """Construct the application router with all included endpoints."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(files_router, tags=["files"])
    api_router.include_router(analysis_router, tags=["analysis"])
    api_router.include_router(chat_router, tags=["chat"])
    api_router.include_router(backup_router, tags=["backup"])
    return api_router


__all__ = ["API_PREFIX", "get_api_router"]
