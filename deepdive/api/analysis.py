"""Analysis result routes."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, status

from ..core.errors import ResourceNotFoundError
from ..schemas import (
    Acknowledgement,
    AnalysisCreatedResponse,
    AnalysisCreateRequest,
    AnalysisResult,
)
from ..store import PersistentStore
from .dependencies import get_store

router = APIRouter()


@router.get("/analysis", response_model=Dict[str, AnalysisResult])
async def list_latest_analyses(
    store: PersistentStore = Depends(get_store),
) -> Dict[str, AnalysisResult]:
    """Latest result per file, keyed by file id."""
    return await store.list_latest_analyses()


@router.get("/analysis/{file_id}", response_model=AnalysisResult)
async def get_latest_analysis(
    file_id: str, store: PersistentStore = Depends(get_store)
) -> AnalysisResult:
    result = await store.get_latest_analysis(file_id)
    if result is None:
        raise ResourceNotFoundError("Analysis result not found", details={"file_id": file_id})
    return result


@router.post(
    "/analysis",
    response_model=AnalysisCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_analysis(
    payload: AnalysisCreateRequest, store: PersistentStore = Depends(get_store)
) -> AnalysisCreatedResponse:
    analysis_id = await store.put_analysis(
        payload.file_id, payload.result, payload.processing_time_ms
    )
    return AnalysisCreatedResponse(id=analysis_id)


@router.delete("/analysis/{file_id}", response_model=Acknowledgement)
async def delete_analyses(
    file_id: str, store: PersistentStore = Depends(get_store)
) -> Acknowledgement:
    await store.delete_analyses(file_id)
    return Acknowledgement(message="Analysis results deleted")
