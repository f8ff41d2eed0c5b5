"""Analysis result table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, ForeignKey, String
from sqlmodel import Field, SQLModel

from .base import json_column, timestamp_column, utcnow


class AnalysisRecord(SQLModel, table=True):
    """One analysis run for a file. The newest row per file is the active result."""

    __tablename__ = "analysis_results"

    id: Optional[int] = Field(default=None, primary_key=True)
    file_id: str = Field(
        sa_column=Column(
            String(512),
            ForeignKey("files.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    markdown_report: str
    chart_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=json_column())
    suggested_questions: List[str] = Field(
        default_factory=list, sa_column=json_column(nullable=False)
    )
    analysis_date: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(index=True))
    processing_time_ms: Optional[int] = Field(default=None)
