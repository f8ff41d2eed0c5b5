"""Store statistics, backup and acknowledgement schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class StoreStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_count: int = Field(default=0, alias="fileCount")
    analysis_count: int = Field(default=0, alias="analysisCount")
    message_count: int = Field(default=0, alias="messageCount")
    storage_size: str = Field(default="0 B", alias="storageSize")


class BackupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    backup_path: Optional[str] = Field(default=None, alias="backupPath")


class BackupResult(BaseModel):
    message: str
    path: Optional[str] = None


class Acknowledgement(BaseModel):
    message: str


class HealthStatus(BaseModel):
    status: Literal["ok", "error"]
    timestamp: datetime


__all__ = [
    "Acknowledgement",
    "BackupRequest",
    "BackupResult",
    "HealthStatus",
    "StoreStats",
]
