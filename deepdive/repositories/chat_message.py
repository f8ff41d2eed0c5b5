"""Repository for chat transcripts."""

from __future__ import annotations

from typing import Dict, List, Sequence

from sqlalchemy import delete, select

from ..db.models import ChatMessageRecord
from ..schemas import ChatMessage
from .base import BaseRepository


class ChatMessageRepository(BaseRepository[ChatMessageRecord]):
    """Repository for :class:`ChatMessageRecord`."""

    model = ChatMessageRecord

    async def history(self, file_id: str) -> List[ChatMessageRecord]:
        statement = (
            select(ChatMessageRecord)
            .where(ChatMessageRecord.file_id == file_id)
            .order_by(ChatMessageRecord.position)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def histories(self) -> Dict[str, List[ChatMessageRecord]]:
        statement = select(ChatMessageRecord).order_by(
            ChatMessageRecord.file_id, ChatMessageRecord.position
        )
        result = await self.session.execute(statement)
        grouped: Dict[str, List[ChatMessageRecord]] = {}
        for record in result.scalars():
            grouped.setdefault(record.file_id, []).append(record)
        return grouped

    async def delete_for_file(self, file_id: str) -> int:
        result = await self.session.execute(
            delete(ChatMessageRecord).where(ChatMessageRecord.file_id == file_id)
        )
        return result.rowcount or 0

    async def replace(self, file_id: str, messages: Sequence[ChatMessage]) -> None:
        """Delete the transcript and insert ``messages`` in order, in the caller's transaction."""
        await self.delete_for_file(file_id)
        self.session.add_all(
            ChatMessageRecord(
                file_id=file_id,
                role=message.role,
                message_text=message.text,
                position=index,
            )
            for index, message in enumerate(messages)
        )
        await self.session.flush()
