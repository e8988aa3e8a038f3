"""Unit tests for webhook ingest."""

import json
import logging

import pytest
from sqlalchemy import select

from app.config import settings
from app.models import Contact, Conversation, Message, MessageStatus, MessageType
from app.services.webhook_event_store import WebhookEventStore
from app.services.webhook_ingest import (
    WebhookIngestService,
    WebhookSignatureError,
    compute_signature,
    parse_inbound_content,
    parse_timestamp,
    verify_signature,
)


def _delivery(phone_number_id="1098765", messages=None, statuses=None, contacts=None):
    value = {
        "messaging_product": "whatsapp",
        "metadata": {"display_phone_number": "15550009999", "phone_number_id": phone_number_id},
    }
    if messages is not None:
        value["messages"] = messages
    if statuses is not None:
        value["statuses"] = statuses
    if contacts is not None:
        value["contacts"] = contacts
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "55501", "changes": [{"field": "messages", "value": value}]}],
    }


def _text(provider_id="wamid.IN1", sender="15557654321", body="Hello!", timestamp="1717230000"):
    return {
        "from": sender,
        "id": provider_id,
        "timestamp": timestamp,
        "type": "text",
        "text": {"body": body},
    }


async def _ingest(service, payload, secret=None):
    raw_body = json.dumps(payload).encode()
    signature = compute_signature(raw_body, secret) if secret else None
    return await service.ingest(payload, raw_body, signature)


@pytest.fixture
def ingest_service(db_session, fake_redis):
    return WebhookIngestService(db_session, fake_redis)


class TestSignature:
    """Tests for X-Hub-Signature-256 handling."""

    def test_round_trip(self):
        body = b'{"object":"whatsapp_business_account"}'
        signature = compute_signature(body, "app-secret")

        assert signature.startswith("sha256=")
        assert verify_signature(body, signature, "app-secret")

    def test_rejects_tampering(self):
        signature = compute_signature(b"original", "app-secret")

        assert not verify_signature(b"tampered", signature, "app-secret")
        assert not verify_signature(b"original", signature, "other-secret")
        assert not verify_signature(b"original", None, "app-secret")


class TestParsing:
    """Tests for webhook content parsing."""

    def test_text(self):
        columns, preview = parse_inbound_content(_text(body="Hi"))

        assert columns == {"content_type": MessageType.TEXT, "content": "Hi"}
        assert preview == "Hi"

    def test_image(self):
        columns, preview = parse_inbound_content(
            {"type": "image", "image": {"id": "img-1", "caption": "Receipt"}}
        )

        assert columns["content_type"] == MessageType.IMAGE
        assert columns["media_id"] == "img-1"
        assert columns["content"] == "Receipt"
        assert preview == "Receipt"

    def test_image_without_caption(self):
        _, preview = parse_inbound_content({"type": "image", "image": {"id": "img-1"}})

        assert preview == "[image]"

    def test_voice_note_is_audio(self):
        columns, preview = parse_inbound_content({"type": "voice", "voice": {"id": "v-1"}})

        assert columns["content_type"] == MessageType.AUDIO
        assert columns["media_id"] == "v-1"
        assert preview == "[audio]"

    def test_unsupported_type_placeholder(self):
        columns, preview = parse_inbound_content({"type": "sticker", "sticker": {"id": "s"}})

        assert columns == {"content_type": MessageType.TEXT, "content": "[sticker]"}
        assert preview == "[sticker]"

    def test_timestamp(self):
        assert parse_timestamp("1717230000").isoformat() == "2024-06-01T08:20:00+00:00"
        assert parse_timestamp(None) is None
        assert parse_timestamp("soon") is None


class TestWebhookIngest:
    """Tests for WebhookIngestService."""

    async def test_inbound_message(self, db_session, ingest_service, account, company):
        payload = _delivery(
            messages=[_text()],
            contacts=[{"wa_id": "15557654321", "profile": {"name": "Eve"}}],
        )

        summary = await _ingest(ingest_service, payload)

        assert summary.processed == 1
        message = (await db_session.execute(select(Message))).scalar_one()
        assert message.company_id == company.id
        assert message.provider_message_id == "wamid.IN1"
        assert message.status == MessageStatus.DELIVERED
        assert message.content == "Hello!"
        contact = await db_session.get(Contact, message.contact_id)
        assert contact.phone == "+15557654321"
        assert contact.name == "Eve"
        conversation = await db_session.get(Conversation, message.conversation_id)
        assert conversation.unread_count == 1

    async def test_redelivery_is_deduplicated(self, db_session, ingest_service, account):
        payload = _delivery(messages=[_text()])

        first = await _ingest(ingest_service, payload)
        second = await _ingest(ingest_service, payload)

        assert first.processed == 1
        assert second.duplicates == 1
        assert len((await db_session.execute(select(Message))).scalars().all()) == 1

    async def test_dedup_key_expires(self, ingest_service, account, fake_redis):
        await _ingest(ingest_service, _delivery(messages=[_text()]))

        [key] = fake_redis.keys_matching("webhook_seen:msg_*")
        assert key == "webhook_seen:msg_wamid.IN1"
        assert fake_redis.expiries[key] == 86400

    async def test_unknown_account_is_ignored(self, db_session, ingest_service, account):
        summary = await _ingest(ingest_service, _delivery(phone_number_id="404", messages=[_text()]))

        assert summary.ignored == 1
        assert (await db_session.execute(select(Message))).scalars().all() == []

    async def test_signature_required_when_secret_set(
        self, db_session, ingest_service, account
    ):
        account.app_secret = "meta-secret"
        await db_session.commit()
        payload = _delivery(messages=[_text()])

        with pytest.raises(WebhookSignatureError):
            await ingest_service.ingest(payload, json.dumps(payload).encode(), "sha256=bogus")

        assert (await db_session.execute(select(Message))).scalars().all() == []
        summary = await _ingest(ingest_service, payload, secret="meta-secret")
        assert summary.processed == 1

    async def test_unsigned_account_is_accepted_with_warning(
        self, db_session, ingest_service, account, caplog
    ):
        with caplog.at_level(logging.WARNING, logger="app.services.webhook_ingest"):
            summary = await _ingest(ingest_service, _delivery(messages=[_text()]))

        assert summary.processed == 1
        assert f"No app secret for account {account.id}" in caplog.text

    async def test_unsigned_account_rejected_when_signature_required(
        self, db_session, ingest_service, account, monkeypatch
    ):
        monkeypatch.setattr(settings, "WHATSAPP_WEBHOOK_REQUIRE_SIGNATURE", True)
        payload = _delivery(messages=[_text()])

        with pytest.raises(WebhookSignatureError):
            await ingest_service.ingest(payload, json.dumps(payload).encode(), None)

        assert (await db_session.execute(select(Message))).scalars().all() == []

    async def test_status_receipts(self, db_session, ingest_service, message_service, account):
        sent = await message_service.send_message("+15551234567", "Hello")
        provider_id = sent.data.message.provider_message_id
        statuses = [
            {"id": provider_id, "status": "delivered", "timestamp": "1717230001"},
            {"id": provider_id, "status": "read", "timestamp": "1717230002"},
        ]

        summary = await _ingest(ingest_service, _delivery(statuses=statuses))

        assert summary.processed == 2
        message = await db_session.get(Message, sent.data.message_id)
        assert message.status == MessageStatus.READ

    async def test_each_status_is_deduplicated_separately(
        self, ingest_service, message_service, account, fake_redis
    ):
        sent = await message_service.send_message("+15551234567", "Hello")
        provider_id = sent.data.message.provider_message_id
        delivered = {"id": provider_id, "status": "delivered"}

        await _ingest(ingest_service, _delivery(statuses=[delivered]))
        again = await _ingest(ingest_service, _delivery(statuses=[delivered]))

        assert again.duplicates == 1
        assert fake_redis.keys_matching("webhook_seen:status_*") == [
            f"webhook_seen:status_{provider_id}_delivered"
        ]

    async def test_failed_status_records_error(
        self, db_session, ingest_service, message_service, account
    ):
        sent = await message_service.send_message("+15551234567", "Hello")
        failed = {
            "id": sent.data.message.provider_message_id,
            "status": "failed",
            "errors": [{"code": 131047, "title": "Re-engagement message"}],
        }

        await _ingest(ingest_service, _delivery(statuses=[failed]))

        message = await db_session.get(Message, sent.data.message_id)
        assert message.error_code == "131047"
        assert message.error_message == "Re-engagement message"

    async def test_receipt_for_unknown_message_is_ignored(self, ingest_service, account):
        summary = await _ingest(
            ingest_service, _delivery(statuses=[{"id": "wamid.ghost", "status": "read"}])
        )

        assert summary.ignored == 1

    async def test_events_are_logged(self, ingest_service, account, company, fake_redis):
        await _ingest(ingest_service, _delivery(messages=[_text()]))

        events = await WebhookEventStore(fake_redis).get_events(company.id)

        assert [(event["event_type"], event["status"]) for event in events] == [
            ("message", "processed")
        ]
