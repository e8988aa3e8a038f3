"""Message repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import Message, RecordState
from app.models.message import MessageDirection


class MessageRepository(BaseRepository[Message]):
    """Repository for message operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Message)

    async def list_for_conversation(
        self,
        *,
        company_id: int,
        conversation_id: int,
        cursor: str | None = None,
        limit: int = 30,
        direction: MessageDirection | None = None,
    ) -> Page[Message]:
        """List active messages of a conversation, most recent first."""
        base_query = select(Message).where(
            Message.company_id == company_id,
            Message.conversation_id == conversation_id,
            Message.state == RecordState.ACTIVE,
        )

        if direction:
            base_query = base_query.where(Message.direction == direction)

        return await self.paginate(
            base_query,
            sort_column=Message.created_at,
            sort_value=lambda message: message.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, message_id: int) -> Message | None:
        """Get an active message ensuring it belongs to the company."""
        stmt = select(Message).where(
            Message.company_id == company_id,
            Message.id == message_id,
            Message.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_provider_id(
        self, company_id: int, provider_message_id: str
    ) -> Message | None:
        """Get message by WhatsApp message ID."""
        stmt = select(Message).where(
            Message.company_id == company_id,
            Message.provider_message_id == provider_message_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
