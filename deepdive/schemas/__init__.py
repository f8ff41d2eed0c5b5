"""Pydantic models shared by the store, the API and the session controller."""

from .analysis import (
    AnalysisCreateRequest,
    AnalysisCreatedResponse,
    AnalysisResult,
    ChartData,
    EquityCurvePoint,
    InstrumentPerformance,
    TimeOfDayPoint,
    WeekdayPoint,
)
from .chat import ChatHistoryUpdate, ChatMessage, ChatRole
from .files import MAX_FILE_NAME_LENGTH, FileCreatedResponse, UploadedFile
from .store import Acknowledgement, BackupRequest, BackupResult, HealthStatus, StoreStats

__all__ = [
    "Acknowledgement",
    "AnalysisCreateRequest",
    "AnalysisCreatedResponse",
    "AnalysisResult",
    "BackupRequest",
    "BackupResult",
    "ChartData",
    "ChatHistoryUpdate",
    "ChatMessage",
    "ChatRole",
    "EquityCurvePoint",
    "FileCreatedResponse",
    "HealthStatus",
    "InstrumentPerformance",
    "MAX_FILE_NAME_LENGTH",
    "StoreStats",
    "TimeOfDayPoint",
    "UploadedFile",
    "WeekdayPoint",
]
