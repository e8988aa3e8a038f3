"""Conversation note repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import ConversationNote, RecordState


class NoteRepository(BaseRepository[ConversationNote]):
    """Repository for conversation note operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ConversationNote)

    async def list_for_conversation(
        self,
        *,
        company_id: int,
        conversation_id: int,
        cursor: str | None = None,
        limit: int = 30,
    ) -> Page[ConversationNote]:
        """List active notes of a conversation, newest first."""
        base_query = select(ConversationNote).where(
            ConversationNote.company_id == company_id,
            ConversationNote.conversation_id == conversation_id,
            ConversationNote.state == RecordState.ACTIVE,
        )
        return await self.paginate(
            base_query,
            sort_column=ConversationNote.created_at,
            sort_value=lambda note: note.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, note_id: int) -> ConversationNote | None:
        """Get an active note ensuring it belongs to the company."""
        stmt = select(ConversationNote).where(
            ConversationNote.company_id == company_id,
            ConversationNote.id == note_id,
            ConversationNote.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
