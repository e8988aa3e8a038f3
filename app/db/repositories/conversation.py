"""Conversation repository for managing conversation state."""

from __future__ import annotations

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import Contact, Conversation, ConversationStatus, Message, RecordState
from app.models.conversation import PREVIEW_MAX_LENGTH
from app.models.base import utcnow

# Conversations without messages sort by creation time
ACTIVITY_SORT_KEY = func.coalesce(Conversation.last_message_time, Conversation.created_at)


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Conversation)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        status: ConversationStatus | None = ConversationStatus.ACTIVE,
        unread_only: bool = False,
        assigned_to_user_id: int | None = None,
        search: str | None = None,
    ) -> Page[Conversation]:
        """List conversations of a company, most recent activity first.

        Args:
            company_id: Tenant scope, always applied first
            cursor: Token from the previous page
            limit: Page size
            status: Status filter, None for all statuses
            unread_only: Only conversations with unread messages
            assigned_to_user_id: Only conversations assigned to this user
            search: Substring of the contact name or phone

        Returns:
            A page of conversations with their contact loaded
        """
        base_query = select(Conversation).where(
            Conversation.company_id == company_id,
            Conversation.state == RecordState.ACTIVE,
        )

        if status is not None:
            base_query = base_query.where(Conversation.status == status)

        if unread_only:
            base_query = base_query.where(Conversation.unread_count > 0)

        if assigned_to_user_id is not None:
            base_query = base_query.where(Conversation.assigned_to_user_id == assigned_to_user_id)

        if search:
            search_term = f"%{search}%"
            base_query = base_query.join(Contact, Conversation.contact_id == Contact.id).where(
                or_(
                    Contact.name.ilike(search_term),
                    Contact.phone.ilike(search_term),
                )
            )

        return await self.paginate(
            base_query,
            sort_column=ACTIVITY_SORT_KEY,
            sort_value=lambda conversation: conversation.last_message_time
            or conversation.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(
        self, company_id: int, conversation_id: int
    ) -> Conversation | None:
        """Get an active conversation ensuring it belongs to the company."""
        stmt = select(Conversation).where(
            Conversation.company_id == company_id,
            Conversation.id == conversation_id,
            Conversation.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_contact(self, company_id: int, contact_id: int) -> Conversation | None:
        """Get the conversation for a contact in any lifecycle state."""
        stmt = select(Conversation).where(
            Conversation.company_id == company_id,
            Conversation.contact_id == contact_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_for_contact(
        self, company_id: int, contact_id: int
    ) -> tuple[Conversation, bool]:
        """Get the contact's conversation or create a new one.

        A soft-deleted conversation is brought back to the active state,
        since there is exactly one conversation per company and contact.

        Returns:
            Tuple of (conversation, created) where created is True if new
        """
        existing = await self.get_for_contact(company_id, contact_id)
        if existing:
            if existing.state != RecordState.ACTIVE:
                existing = await self.update(
                    existing,
                    state=RecordState.ACTIVE,
                    status=ConversationStatus.ACTIVE,
                    unread_count=0,
                )
            return existing, False

        conversation = await self.create(
            company_id=company_id,
            contact_id=contact_id,
            status=ConversationStatus.ACTIVE,
            unread_count=0,
        )
        return conversation, True

    def apply_last_message(
        self,
        conversation: Conversation,
        message: Message,
        preview: str,
        *,
        increment_unread: bool = False,
    ) -> None:
        """Point the conversation summary at ``message``.

        Only mutates the instance; the caller commits together with the
        message change so the summary is never stale.
        """
        conversation.last_message_id = message.id
        conversation.last_message_preview = preview[:PREVIEW_MAX_LENGTH]
        conversation.last_message_time = message.created_at
        if increment_unread:
            conversation.unread_count = (conversation.unread_count or 0) + 1
        else:
            conversation.unread_count = 0

    async def soft_delete_messages(self, company_id: int, conversation_id: int) -> None:
        """Mark every message of the conversation as deleted (no commit)."""
        await self.session.execute(
            update(Message)
            .where(
                Message.company_id == company_id,
                Message.conversation_id == conversation_id,
            )
            .values(state=RecordState.DELETED, updated_at=utcnow())
        )

    @staticmethod
    def clear_summary(conversation: Conversation) -> None:
        """Reset the last-message fields and unread counter."""
        conversation.unread_count = 0
        conversation.last_message_id = None
        conversation.last_message_preview = None
        conversation.last_message_time = None
