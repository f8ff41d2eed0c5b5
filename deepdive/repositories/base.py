"""Shared repository operations."""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

RecordT = TypeVar("RecordT", bound=SQLModel)


class BaseRepository(Generic[RecordT]):
    """Lookups and writes for one table inside a caller-owned session.

    Repositories flush but never commit, so a store operation that touches
    several tables commits or rolls back as one unit.
    """

    model: ClassVar[Type[SQLModel]]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: Any) -> Optional[RecordT]:
        return await self.session.get(self.model, key)

    async def create(self, record: RecordT) -> RecordT:
        """Add ``record`` and flush so database defaults and keys are filled in."""
        self.session.add(record)
        await self.session.flush()
        return record

    async def delete(self, key: Any) -> bool:
        record = await self.get(key)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())
