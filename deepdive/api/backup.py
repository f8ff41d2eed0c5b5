"""Backup route."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..schemas import BackupRequest, BackupResult
from ..store import PersistentStore
from .dependencies import get_store

router = APIRouter()


@router.post("/backup", response_model=BackupResult)
async def create_backup(
    payload: Optional[BackupRequest] = Body(default=None),
    store: PersistentStore = Depends(get_store),
) -> BackupResult:
    path = payload.backup_path if payload else None
    return await store.backup(path or None)
