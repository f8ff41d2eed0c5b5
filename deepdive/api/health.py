"""Health and statistics routes."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..core.errors import DeepDiveError
from ..schemas import HealthStatus, StoreStats
from ..store import PersistentStore
from .dependencies import get_store

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/health", response_model=HealthStatus)
async def get_health(store: PersistentStore = Depends(get_store)):
    timestamp = datetime.now(timezone.utc)
    try:
        await store.health_check()
    except DeepDiveError as exc:
        logger.warning("Store health check failed", error=exc.message)
        body = HealthStatus(status="error", timestamp=timestamp)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return HealthStatus(status="ok", timestamp=timestamp)


@router.get("/stats", response_model=StoreStats)
async def get_stats(store: PersistentStore = Depends(get_store)) -> StoreStats:
    return await store.stats()
