"""Unit tests for cursor pagination through the repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.cursor import encode_cursor
from app.db.repositories import ContactRepository, ConversationRepository, MessageRepository
from app.models import Contact, Conversation, Message, RecordState
from app.models.message import MessageDirection, MessageStatus

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
WALK_SIZE = 5
PAGE_SIZES = [1, WALK_SIZE - 1, WALK_SIZE, WALK_SIZE + 1]


async def _add_contacts(db_session, company_id, created_times):
    contacts = []
    for index, created_at in enumerate(created_times):
        contact = Contact(
            company_id=company_id,
            phone=f"+1555000{index:04d}",
            name=f"Contact {index}",
            tags=[],
            created_at=created_at,
        )
        db_session.add(contact)
        contacts.append(contact)
    await db_session.commit()
    return contacts


def _assert_first_page(page, limit):
    if limit < WALK_SIZE:
        assert page.has_more is True
        assert page.next_cursor is not None
    else:
        assert page.has_more is False
        assert page.next_cursor is None


async def _collect(fetch_page):
    """Walk every page, returning the ids in order and the page count."""
    ids, cursor, pages = [], None, 0
    while True:
        page = await fetch_page(cursor)
        pages += 1
        ids.extend(item.id for item in page.items)
        if not page.has_more:
            assert page.next_cursor is None
            return ids, pages
        assert page.next_cursor
        cursor = page.next_cursor


class TestContactPagination:
    """Tests for paginating contacts newest first."""

    async def test_first_page(self, db_session, company):
        await _add_contacts(
            db_session, company.id, [BASE_TIME + timedelta(minutes=i) for i in range(5)]
        )
        repo = ContactRepository(db_session)

        page = await repo.list(company_id=company.id, limit=2)

        assert [contact.phone for contact in page.items] == ["+15550000004", "+15550000003"]
        assert page.has_more is True
        assert page.next_cursor is not None

    async def test_walks_every_row_once(self, db_session, company):
        contacts = await _add_contacts(
            db_session, company.id, [BASE_TIME + timedelta(minutes=i) for i in range(7)]
        )
        repo = ContactRepository(db_session)

        ids, pages = await _collect(
            lambda cursor: repo.list(company_id=company.id, cursor=cursor, limit=3)
        )

        assert ids == [contact.id for contact in reversed(contacts)]
        assert pages == 3

    @pytest.mark.parametrize("limit", PAGE_SIZES)
    async def test_walk_for_each_page_size(self, db_session, company, limit):
        created = [BASE_TIME, BASE_TIME, BASE_TIME + timedelta(minutes=1)]
        created += [BASE_TIME + timedelta(minutes=1), BASE_TIME + timedelta(minutes=2)]
        contacts = await _add_contacts(db_session, company.id, created)
        repo = ContactRepository(db_session)
        expected = [
            contact.id
            for contact in sorted(contacts, key=lambda c: (c.created_at, c.id), reverse=True)
        ]

        first = await repo.list(company_id=company.id, limit=limit)
        ids, pages = await _collect(
            lambda cursor: repo.list(company_id=company.id, cursor=cursor, limit=limit)
        )

        _assert_first_page(first, limit)
        assert len(ids) == len(set(ids))
        assert ids == expected
        assert pages == -(-WALK_SIZE // limit)

    async def test_ties_are_broken_by_id(self, db_session, company):
        """Rows sharing a timestamp are neither skipped nor repeated."""
        contacts = await _add_contacts(db_session, company.id, [BASE_TIME] * 5)
        repo = ContactRepository(db_session)

        ids, _ = await _collect(
            lambda cursor: repo.list(company_id=company.id, cursor=cursor, limit=2)
        )

        assert ids == sorted((contact.id for contact in contacts), reverse=True)

    async def test_exact_multiple_ends_without_cursor(self, db_session, company):
        await _add_contacts(
            db_session, company.id, [BASE_TIME + timedelta(minutes=i) for i in range(4)]
        )
        repo = ContactRepository(db_session)

        first = await repo.list(company_id=company.id, limit=2)
        second = await repo.list(company_id=company.id, cursor=first.next_cursor, limit=2)

        assert len(second.items) == 2
        assert second.has_more is False
        assert second.next_cursor is None

    async def test_invalid_cursor_starts_over(self, db_session, company):
        await _add_contacts(
            db_session, company.id, [BASE_TIME + timedelta(minutes=i) for i in range(3)]
        )
        repo = ContactRepository(db_session)

        page = await repo.list(company_id=company.id, cursor="%%%garbage", limit=10)

        assert len(page.items) == 3

    async def test_cursor_with_unparseable_sort_value_is_ignored(self, db_session, company):
        await _add_contacts(
            db_session, company.id, [BASE_TIME + timedelta(minutes=i) for i in range(3)]
        )
        repo = ContactRepository(db_session)

        page = await repo.list(
            company_id=company.id, cursor=encode_cursor("yesterday", 1), limit=10
        )

        assert len(page.items) == 3

    async def test_empty(self, db_session, company):
        page = await ContactRepository(db_session).list(company_id=company.id, limit=10)

        assert page.items == []
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_company_scope_and_deleted_rows(self, db_session, company, other_company):
        mine = await _add_contacts(db_session, company.id, [BASE_TIME, BASE_TIME])
        await _add_contacts(db_session, other_company.id, [BASE_TIME])
        mine[0].state = RecordState.DELETED
        await db_session.commit()

        page = await ContactRepository(db_session).list(company_id=company.id, limit=10)

        assert [contact.id for contact in page.items] == [mine[1].id]

    async def test_search(self, db_session, company):
        await _add_contacts(db_session, company.id, [BASE_TIME] * 3)
        repo = ContactRepository(db_session)

        by_name = await repo.list(company_id=company.id, search="contact 1", limit=10)
        by_phone = await repo.list(company_id=company.id, search="0002", limit=10)

        assert [contact.name for contact in by_name.items] == ["Contact 1"]
        assert [contact.name for contact in by_phone.items] == ["Contact 2"]


class TestMessagePagination:
    """Tests for paginating a conversation's messages."""

    @pytest.fixture
    async def conversation(self, db_session, company):
        contact = Contact(company_id=company.id, phone="+15551112222", tags=[])
        db_session.add(contact)
        await db_session.flush()
        conversation = Conversation(company_id=company.id, contact_id=contact.id)
        db_session.add(conversation)
        await db_session.commit()
        return conversation

    async def test_messages_newest_first(self, db_session, company, conversation):
        messages = []
        for index in range(5):
            message = Message(
                company_id=company.id,
                conversation_id=conversation.id,
                contact_id=conversation.contact_id,
                direction=MessageDirection.OUTBOUND,
                status=MessageStatus.SENT,
                content=f"message {index}",
                created_at=BASE_TIME + timedelta(seconds=index),
            )
            db_session.add(message)
            messages.append(message)
        await db_session.commit()
        repo = MessageRepository(db_session)

        ids, pages = await _collect(
            lambda cursor: repo.list_for_conversation(
                company_id=company.id,
                conversation_id=conversation.id,
                cursor=cursor,
                limit=2,
            )
        )

        assert ids == [message.id for message in reversed(messages)]
        assert pages == 3


class TestConversationPagination:
    """Tests for ordering conversations by activity."""

    async def test_orders_by_last_message_then_creation(self, db_session, company):
        contacts = await _add_contacts(db_session, company.id, [BASE_TIME] * 3)
        quiet = Conversation(
            company_id=company.id,
            contact_id=contacts[0].id,
            created_at=BASE_TIME + timedelta(hours=2),
        )
        old = Conversation(
            company_id=company.id,
            contact_id=contacts[1].id,
            created_at=BASE_TIME,
            last_message_time=BASE_TIME + timedelta(hours=1),
        )
        recent = Conversation(
            company_id=company.id,
            contact_id=contacts[2].id,
            created_at=BASE_TIME,
            last_message_time=BASE_TIME + timedelta(hours=3),
        )
        db_session.add_all([quiet, old, recent])
        await db_session.commit()
        repo = ConversationRepository(db_session)

        ids, pages = await _collect(
            lambda cursor: repo.list(company_id=company.id, cursor=cursor, limit=1)
        )

        assert ids == [recent.id, quiet.id, old.id]
        assert pages == 3

    @pytest.mark.parametrize("limit", PAGE_SIZES)
    async def test_walk_with_tied_activity(self, db_session, company, limit):
        """Conversations whose activity key ties are ordered by id on every page size."""
        contacts = await _add_contacts(db_session, company.id, [BASE_TIME] * WALK_SIZE)
        conversations = []
        for index, contact in enumerate(contacts):
            # Alternate between a last message and a bare creation time at the same instant
            if index % 2:
                conversation = Conversation(
                    company_id=company.id, contact_id=contact.id, created_at=BASE_TIME
                )
            else:
                conversation = Conversation(
                    company_id=company.id,
                    contact_id=contact.id,
                    created_at=BASE_TIME - timedelta(days=1),
                    last_message_time=BASE_TIME,
                )
            db_session.add(conversation)
            conversations.append(conversation)
        await db_session.commit()
        repo = ConversationRepository(db_session)

        first = await repo.list(company_id=company.id, limit=limit)
        ids, pages = await _collect(
            lambda cursor: repo.list(company_id=company.id, cursor=cursor, limit=limit)
        )

        _assert_first_page(first, limit)
        assert len(ids) == len(set(ids))
        assert ids == sorted((c.id for c in conversations), reverse=True)
        assert pages == -(-WALK_SIZE // limit)
