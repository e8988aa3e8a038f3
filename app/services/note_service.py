"""Conversation notes service."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import ConversationRepository, NoteRepository
from app.db.repositories.base import Page
from app.models import ConversationNote, RecordState
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)


class NoteService:
    """Internal notes on conversations. Only the author may change a note."""

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = NoteRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("create note")
    async def create(
        self, conversation_id: int, content: str, is_pinned: bool = False
    ) -> ServiceResult[ConversationNote]:
        conversation = await self.conversation_repo.get_by_company(
            self.company_id, conversation_id
        )
        if not conversation:
            return ServiceResult.not_found("Conversation")

        content = (content or "").strip()
        if not content:
            return ServiceResult.fail("Note content is required", ErrorCode.VALIDATION_ERROR)

        try:
            note = await self.repo.create(
                company_id=self.company_id,
                conversation_id=conversation_id,
                created_by=self.user_id,
                content=content,
                is_pinned=is_pinned,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create note on conversation {conversation_id}: {e}")
            return ServiceResult.fail("Failed to create note", ErrorCode.UNKNOWN)

        await self._audit(note.id, "CREATE", None, {"content": content, "is_pinned": is_pinned})
        return ServiceResult.ok(note)

    @handles_db_errors("load note")
    async def get(self, note_id: int) -> ServiceResult[ConversationNote]:
        note = await self.repo.get_by_company(self.company_id, note_id)
        if not note:
            return ServiceResult.not_found("Note")
        return ServiceResult.ok(note)

    @handles_db_errors("list notes")
    async def list_for_conversation(
        self,
        conversation_id: int,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[ConversationNote]]:
        conversation = await self.conversation_repo.get_by_company(
            self.company_id, conversation_id
        )
        if not conversation:
            return ServiceResult.not_found("Conversation")

        page = await self.repo.list_for_conversation(
            company_id=self.company_id,
            conversation_id=conversation_id,
            cursor=cursor,
            limit=limit,
        )
        return ServiceResult.ok(page)

    @handles_db_errors("update note")
    async def update(
        self,
        note_id: int,
        *,
        content: str | None = None,
        is_pinned: bool | None = None,
    ) -> ServiceResult[ConversationNote]:
        note = await self.repo.get_by_company(self.company_id, note_id)
        if not note:
            return ServiceResult.not_found("Note")
        if note.created_by != self.user_id:
            return ServiceResult.fail(
                "Only the author can edit this note", ErrorCode.FORBIDDEN
            )

        changes = {}
        if content is not None:
            content = content.strip()
            if not content:
                return ServiceResult.fail("Note content is required", ErrorCode.VALIDATION_ERROR)
            changes["content"] = content
        if is_pinned is not None:
            changes["is_pinned"] = is_pinned
        if not changes:
            return ServiceResult.ok(note)

        old_values = {key: getattr(note, key) for key in changes}
        try:
            note = await self.repo.update(note, updated_by=self.user_id, **changes)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update note {note_id}: {e}")
            return ServiceResult.fail("Failed to update note", ErrorCode.UNKNOWN)

        await self._audit(note_id, "UPDATE", old_values, changes)
        return ServiceResult.ok(note)

    @handles_db_errors("delete note")
    async def delete(self, note_id: int) -> ServiceResult[None]:
        note = await self.repo.get_by_company(self.company_id, note_id)
        if not note:
            return ServiceResult.not_found("Note")
        if note.created_by != self.user_id:
            return ServiceResult.fail(
                "Only the author can delete this note", ErrorCode.FORBIDDEN
            )

        try:
            await self.repo.update(note, state=RecordState.DELETED, updated_by=self.user_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete note {note_id}: {e}")
            return ServiceResult.fail("Failed to delete note", ErrorCode.UNKNOWN)

        await self._audit(
            note_id,
            "DELETE",
            {"state": RecordState.ACTIVE.value},
            {"state": RecordState.DELETED.value},
        )
        return ServiceResult.ok(None)

    async def _audit(self, note_id: int, action: str, old_values, new_values) -> None:
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="conversation_note",
            entity_id=note_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
        )
