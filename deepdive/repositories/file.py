"""Repository for uploaded files."""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import select, update

from ..db.models import FileRecord
from .base import BaseRepository


class FileRepository(BaseRepository[FileRecord]):
    """Repository for :class:`FileRecord`."""

    model = FileRecord

    async def list_newest_first(self) -> List[FileRecord]:
        statement = select(FileRecord).order_by(
            FileRecord.upload_date.desc(), FileRecord.id.desc()
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def exists(self, file_id: str) -> bool:
        result = await self.session.execute(
            select(FileRecord.id).where(FileRecord.id == file_id)
        )
        return result.scalar_one_or_none() is not None

    async def touch(self, file_id: str, when: datetime) -> bool:
        """Set ``last_accessed``. Returns False when the file does not exist."""
        result = await self.session.execute(
            update(FileRecord).where(FileRecord.id == file_id).values(last_accessed=when)
        )
        return (result.rowcount or 0) > 0
