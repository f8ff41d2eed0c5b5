"""Repository for analysis results."""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import delete, select

from ..db.models import AnalysisRecord
from .base import BaseRepository

_NEWEST_FIRST = (AnalysisRecord.analysis_date.desc(), AnalysisRecord.id.desc())


class AnalysisResultRepository(BaseRepository[AnalysisRecord]):
    """Repository for :class:`AnalysisRecord`. Full history is kept; reads pick the newest."""

    model = AnalysisRecord

    async def latest_for_file(self, file_id: str) -> Optional[AnalysisRecord]:
        statement = (
            select(AnalysisRecord)
            .where(AnalysisRecord.file_id == file_id)
            .order_by(*_NEWEST_FIRST)
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def latest_per_file(self) -> Dict[str, AnalysisRecord]:
        statement = select(AnalysisRecord).order_by(AnalysisRecord.file_id, *_NEWEST_FIRST)
        result = await self.session.execute(statement)
        latest: Dict[str, AnalysisRecord] = {}
        for record in result.scalars():
            latest.setdefault(record.file_id, record)
        return latest

    async def delete_for_file(self, file_id: str) -> int:
        result = await self.session.execute(
            delete(AnalysisRecord).where(AnalysisRecord.file_id == file_id)
        )
        return result.rowcount or 0
