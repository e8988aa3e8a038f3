"""Conversation management service."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import ConversationRepository, UserRepository
from app.db.repositories.base import Page
from app.models import Conversation, ConversationStatus, RecordState
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationFilters:
    """Filters for listing conversations. ``status=None`` lists every status."""

    status: ConversationStatus | None = ConversationStatus.ACTIVE
    unread_only: bool = False
    assigned_to_user_id: int | None = None
    search: str | None = None


class ConversationService:
    """Company-scoped conversation operations."""

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = ConversationRepository(db)
        self.user_repo = UserRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("list conversations")
    async def list_conversations(
        self,
        filters: ConversationFilters | None = None,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[Conversation]]:
        filters = filters or ConversationFilters()
        page = await self.repo.list(
            company_id=self.company_id,
            cursor=cursor,
            limit=limit,
            status=filters.status,
            unread_only=filters.unread_only,
            assigned_to_user_id=filters.assigned_to_user_id,
            search=filters.search,
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load conversation")
    async def get_conversation(self, conversation_id: int) -> ServiceResult[Conversation]:
        conversation = await self.repo.get_by_company(self.company_id, conversation_id)
        if not conversation:
            return ServiceResult.not_found("Conversation")
        return ServiceResult.ok(conversation)

    @handles_db_errors("mark conversation read")
    async def mark_read(self, conversation_id: int) -> ServiceResult[Conversation]:
        """Reset the unread counter."""
        return await self._change(conversation_id, "MARK_READ", unread_count=0)

    @handles_db_errors("archive conversation")
    async def archive(self, conversation_id: int) -> ServiceResult[Conversation]:
        return await self._change(conversation_id, "ARCHIVE", status=ConversationStatus.ARCHIVED)

    @handles_db_errors("unarchive conversation")
    async def unarchive(self, conversation_id: int) -> ServiceResult[Conversation]:
        return await self._change(conversation_id, "UNARCHIVE", status=ConversationStatus.ACTIVE)

    @handles_db_errors("assign conversation")
    async def assign(
        self, conversation_id: int, user_id: int | None
    ) -> ServiceResult[Conversation]:
        """Assign the conversation to a user of the company, or unassign it with None."""
        if user_id is not None:
            assignee = await self.user_repo.get_by_company(self.company_id, user_id)
            if not assignee or not assignee.is_active:
                return ServiceResult.not_found("User")
        return await self._change(conversation_id, "ASSIGN", assigned_to_user_id=user_id)

    @handles_db_errors("clear conversation")
    async def clear(self, conversation_id: int) -> ServiceResult[Conversation]:
        """Soft-delete every message and reset the conversation summary."""
        conversation = await self.repo.get_by_company(self.company_id, conversation_id)
        if not conversation:
            return ServiceResult.not_found("Conversation")

        old_values = {"last_message_id": conversation.last_message_id}
        try:
            await self.repo.soft_delete_messages(self.company_id, conversation_id)
            self.repo.clear_summary(conversation)
            await self.db.commit()
            await self.db.refresh(conversation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to clear conversation {conversation_id}: {e}")
            return ServiceResult.fail("Failed to clear conversation", ErrorCode.UNKNOWN)

        await self._audit(conversation_id, "CLEAR", old_values, {"last_message_id": None})
        return ServiceResult.ok(conversation)

    @handles_db_errors("delete conversation")
    async def delete(self, conversation_id: int) -> ServiceResult[None]:
        """Soft-delete the conversation together with its messages."""
        conversation = await self.repo.get_by_company(self.company_id, conversation_id)
        if not conversation:
            return ServiceResult.not_found("Conversation")

        try:
            await self.repo.soft_delete_messages(self.company_id, conversation_id)
            self.repo.clear_summary(conversation)
            conversation.state = RecordState.DELETED
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete conversation {conversation_id}: {e}")
            return ServiceResult.fail("Failed to delete conversation", ErrorCode.UNKNOWN)

        await self._audit(
            conversation_id,
            "DELETE",
            {"state": RecordState.ACTIVE.value},
            {"state": RecordState.DELETED.value},
        )
        return ServiceResult.ok(None)

    async def _change(
        self, conversation_id: int, action: str, **values
    ) -> ServiceResult[Conversation]:
        conversation = await self.repo.get_by_company(self.company_id, conversation_id)
        if not conversation:
            return ServiceResult.not_found("Conversation")

        old_values = {key: _plain(getattr(conversation, key)) for key in values}
        try:
            conversation = await self.repo.update(conversation, **values)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action.lower()} conversation {conversation_id}: {e}")
            return ServiceResult.fail("Failed to update conversation", ErrorCode.UNKNOWN)

        await self._audit(
            conversation_id,
            action,
            old_values,
            {key: _plain(value) for key, value in values.items()},
        )
        return ServiceResult.ok(conversation)

    async def _audit(self, conversation_id: int, action: str, old_values, new_values) -> None:
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="conversation",
            entity_id=conversation_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
        )


def _plain(value):
    """JSON-friendly form of a column value."""
    return getattr(value, "value", value)
