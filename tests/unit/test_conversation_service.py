"""Unit tests for ConversationService and NoteService."""

import pytest
from sqlalchemy import select

from app.core.result import ErrorCode
from app.db.repositories import AuditLogRepository, ConversationRepository, NoteRepository
from app.models import ConversationStatus, Message, MessageType, RecordState
from app.services import ConversationFilters, ConversationService, MessageService, NoteService


async def _inbound(db_session, company_id, phone, provider_id, body="Hi"):
    result = await MessageService(db_session, company_id).record_inbound(
        phone=phone,
        provider_message_id=provider_id,
        columns={"content_type": MessageType.TEXT, "content": body},
        preview=body,
    )
    return result.data


@pytest.fixture
async def conversation_id(db_session, company):
    message = await _inbound(db_session, company.id, "+15550001111", "wamid.a")
    return message.conversation_id


@pytest.fixture
def service(db_session, company, user):
    return ConversationService(db_session, company.id, user.id)


class TestConversationService:
    """Tests for ConversationService."""

    async def test_list_defaults_to_active(self, db_session, company, service, conversation_id):
        archived = await _inbound(db_session, company.id, "+15550002222", "wamid.b")
        await service.archive(archived.conversation_id)

        active = await service.list_conversations()
        everything = await service.list_conversations(ConversationFilters(status=None))

        assert [c.id for c in active.data.items] == [conversation_id]
        assert {c.id for c in everything.data.items} == {conversation_id, archived.conversation_id}

    async def test_list_filters(self, db_session, company, user, service, conversation_id):
        other = await _inbound(db_session, company.id, "+15550002222", "wamid.b")
        await service.mark_read(other.conversation_id)
        await service.assign(other.conversation_id, user.id)

        unread = await service.list_conversations(ConversationFilters(unread_only=True))
        assigned = await service.list_conversations(
            ConversationFilters(assigned_to_user_id=user.id)
        )
        searched = await service.list_conversations(ConversationFilters(search="0002222"))

        assert [c.id for c in unread.data.items] == [conversation_id]
        assert [c.id for c in assigned.data.items] == [other.conversation_id]
        assert [c.id for c in searched.data.items] == [other.conversation_id]

    async def test_list_most_recent_activity_first(self, db_session, company, service):
        first = await _inbound(db_session, company.id, "+15550001111", "wamid.1")
        second = await _inbound(db_session, company.id, "+15550002222", "wamid.2")
        await _inbound(db_session, company.id, "+15550001111", "wamid.3")

        page = await service.list_conversations()

        assert [c.id for c in page.data.items] == [
            first.conversation_id,
            second.conversation_id,
        ]

    async def test_get_is_company_scoped(self, db_session, other_company, user, conversation_id):
        other = ConversationService(db_session, other_company.id, user.id)

        result = await other.get_conversation(conversation_id)

        assert result.code == ErrorCode.NOT_FOUND

    async def test_mark_read(self, service, conversation_id):
        result = await service.mark_read(conversation_id)

        assert result.data.unread_count == 0

    async def test_archive_and_unarchive(self, service, conversation_id):
        archived = await service.archive(conversation_id)
        assert archived.data.status == ConversationStatus.ARCHIVED

        restored = await service.unarchive(conversation_id)
        assert restored.data.status == ConversationStatus.ACTIVE

    async def test_assign_requires_company_user(
        self, db_session, service, other_user, conversation_id
    ):
        assigned = await service.assign(conversation_id, other_user.id)
        assert assigned.data.assigned_to_user_id == other_user.id

        missing = await service.assign(conversation_id, 999)
        assert missing.code == ErrorCode.NOT_FOUND

        cleared = await service.assign(conversation_id, None)
        assert cleared.data.assigned_to_user_id is None

    async def test_assign_rejects_inactive_user(
        self, db_session, service, other_user, conversation_id
    ):
        other_user.is_active = False
        await db_session.commit()

        result = await service.assign(conversation_id, other_user.id)

        assert result.code == ErrorCode.NOT_FOUND

    async def test_assign_records_audit(
        self, db_session, company, service, other_user, conversation_id
    ):
        await service.assign(conversation_id, other_user.id)

        entries = await AuditLogRepository(db_session).list_for_entity(
            company.id, "conversation", conversation_id
        )

        assert entries[-1].action == "ASSIGN"
        assert entries[-1].old_values == {"assigned_to_user_id": None}
        assert entries[-1].new_values == {"assigned_to_user_id": other_user.id}

    async def test_clear_soft_deletes_messages(self, db_session, service, conversation_id):
        result = await service.clear(conversation_id)

        conversation = result.data
        assert conversation.last_message_id is None
        assert conversation.last_message_preview is None
        assert conversation.unread_count == 0
        assert conversation.state == RecordState.ACTIVE
        states = (await db_session.execute(select(Message.state))).scalars().all()
        assert states == [RecordState.DELETED]

    async def test_delete_hides_conversation(self, service, conversation_id):
        result = await service.delete(conversation_id)

        assert result.success
        assert (await service.get_conversation(conversation_id)).code == ErrorCode.NOT_FOUND
        assert (await service.delete(conversation_id)).code == ErrorCode.NOT_FOUND

    async def test_unknown_conversation(self, service):
        assert (await service.archive(404)).code == ErrorCode.NOT_FOUND
        assert (await service.clear(404)).code == ErrorCode.NOT_FOUND

    async def test_database_errors_become_failed_results(self, service, db_outage):
        db_outage(ConversationRepository, "list")
        db_outage(ConversationRepository, "get_by_company")

        listed = await service.list_conversations()
        fetched = await service.get_conversation(1)
        archived = await service.archive(1)

        assert listed.success is False
        assert listed.code == ErrorCode.UNKNOWN
        assert fetched.code == ErrorCode.UNKNOWN
        assert archived.code == ErrorCode.UNKNOWN


class TestNoteService:
    """Tests for NoteService."""

    async def test_create_and_list(self, db_session, company, user, conversation_id):
        notes = NoteService(db_session, company.id, user.id)

        created = await notes.create(conversation_id, "  Called back, no answer  ")
        page = await notes.list_for_conversation(conversation_id)

        assert created.data.content == "Called back, no answer"
        assert created.data.created_by == user.id
        assert [note.id for note in page.data.items] == [created.data.id]

    async def test_create_validation(self, db_session, company, user, conversation_id):
        notes = NoteService(db_session, company.id, user.id)

        assert (await notes.create(conversation_id, "   ")).code == ErrorCode.VALIDATION_ERROR
        assert (await notes.create(999, "text")).code == ErrorCode.NOT_FOUND

    async def test_only_author_may_change(
        self, db_session, company, user, other_user, conversation_id
    ):
        created = await NoteService(db_session, company.id, user.id).create(
            conversation_id, "Mine"
        )
        intruder = NoteService(db_session, company.id, other_user.id)

        update = await intruder.update(created.data.id, content="Theirs")
        delete = await intruder.delete(created.data.id)

        assert update.code == ErrorCode.FORBIDDEN
        assert delete.code == ErrorCode.FORBIDDEN

    async def test_update_and_delete(self, db_session, company, user, conversation_id):
        notes = NoteService(db_session, company.id, user.id)
        created = await notes.create(conversation_id, "Draft")

        updated = await notes.update(created.data.id, content="Final", is_pinned=True)
        deleted = await notes.delete(created.data.id)

        assert updated.data.content == "Final"
        assert updated.data.is_pinned is True
        assert updated.data.updated_by == user.id
        assert deleted.success
        assert (await notes.get(created.data.id)).code == ErrorCode.NOT_FOUND

    async def test_database_errors_become_failed_results(
        self, db_session, company, user, db_outage
    ):
        notes = NoteService(db_session, company.id, user.id)
        db_outage(NoteRepository, "get_by_company")
        db_outage(ConversationRepository, "get_by_company")

        fetched = await notes.get(1)
        listed = await notes.list_for_conversation(1)

        assert fetched.success is False
        assert fetched.code == ErrorCode.UNKNOWN
        assert listed.code == ErrorCode.UNKNOWN
