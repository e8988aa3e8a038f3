"""Meta webhook ingest: inbound messages and delivery receipts."""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.telemetry import get_tracer
from app.db.repositories import WhatsAppAccountRepository
from app.models import WhatsAppAccount
from app.models.message import MessageType
from app.services.message_service import MessageService
from app.services.webhook_event_store import WebhookEventStore

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

SIGNATURE_PREFIX = "sha256="


class WebhookSignatureError(Exception):
    """Raised when X-Hub-Signature-256 does not match the request body."""


def compute_signature(raw_body: bytes, app_secret: str) -> str:
    digest = hmac.new(app_secret.encode(), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(raw_body: bytes, signature: str | None, app_secret: str) -> bool:
    """Check an X-Hub-Signature-256 header against the raw request body."""
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(raw_body, app_secret), signature)


def parse_inbound_content(message: dict[str, Any]) -> tuple[dict[str, Any], str]:
    """Map a webhook message to message columns and a conversation preview.

    Types other than text, image and audio are stored as a ``[type]`` text
    placeholder.
    """
    message_type = message.get("type") or "unknown"

    if message_type == "text":
        body = (message.get("text") or {}).get("body") or ""
        return {"content_type": MessageType.TEXT, "content": body}, body

    if message_type == "image":
        image = message.get("image") or {}
        caption = image.get("caption") or ""
        columns = {
            "content_type": MessageType.IMAGE,
            "content": caption,
            "media_id": image.get("id"),
            "media_url": image.get("url"),
        }
        return columns, caption or "[image]"

    if message_type in ("audio", "voice"):
        audio = message.get(message_type) or {}
        columns = {
            "content_type": MessageType.AUDIO,
            "content": "",
            "media_id": audio.get("id"),
            "media_url": audio.get("url"),
        }
        return columns, "[audio]"

    placeholder = f"[{message_type}]"
    return {"content_type": MessageType.TEXT, "content": placeholder}, placeholder


def parse_timestamp(value: Any) -> datetime | None:
    """Webhook timestamps are unix seconds sent as strings."""
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def _profile_name(value: dict[str, Any], wa_id: str | None) -> str | None:
    contacts = value.get("contacts") or []
    for contact in contacts:
        if contact.get("wa_id") == wa_id:
            return (contact.get("profile") or {}).get("name")
    if contacts:
        return (contacts[0].get("profile") or {}).get("name")
    return None


@dataclass
class IngestSummary:
    """Counts of what one webhook delivery contained."""

    processed: int = 0
    duplicates: int = 0
    ignored: int = 0
    failed: int = 0


class WebhookIngestService:
    """Apply a Meta webhook delivery to the database.

    Each change is routed to the account owning
    ``value.metadata.phone_number_id``. Events are deduplicated by provider
    id in Redis and logged to the webhook event store.
    """

    def __init__(self, db: AsyncSession, redis: Redis):
        self.db = db
        self.store = WebhookEventStore(redis)
        self.account_repo = WhatsAppAccountRepository(db)

    async def ingest(
        self,
        payload: dict[str, Any],
        raw_body: bytes,
        signature: str | None,
    ) -> IngestSummary:
        """Process every message and status of the delivery.

        Raises:
            WebhookSignatureError: If the signature does not match the app
                secret of an addressed account, or an account has no secret
                while WHATSAPP_WEBHOOK_REQUIRE_SIGNATURE is set. Nothing is
                processed then.
        """
        with tracer.start_as_current_span("webhook.ingest") as span:
            summary = IngestSummary()
            routed: list[tuple[WhatsAppAccount, dict[str, Any]]] = []

            for entry in payload.get("entry") or []:
                for change in entry.get("changes") or []:
                    value = change.get("value") or {}
                    phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
                    account = None
                    if phone_number_id:
                        account = await self.account_repo.get_by_phone_number_id(
                            str(phone_number_id)
                        )
                    if account is None:
                        logger.warning(
                            f"Ignoring webhook change for unknown phone number id {phone_number_id}"
                        )
                        await self.store.store_event(
                            None, "unknown", value, status="ignored", error="unknown_account"
                        )
                        summary.ignored += 1
                        continue
                    routed.append((account, value))

            for account in {account.id: account for account, _ in routed}.values():
                self._check_signature(account, raw_body, signature)

            for account, value in routed:
                service = MessageService(self.db, account.company_id)
                for message in value.get("messages") or []:
                    await self._handle_message(service, account, value, message, summary)
                for status in value.get("statuses") or []:
                    await self._handle_status(service, account, status, summary)

            span.set_attribute("webhook.processed", summary.processed)
            span.set_attribute("webhook.duplicates", summary.duplicates)
            span.set_attribute("webhook.failed", summary.failed)
            return summary

    def _check_signature(
        self, account: WhatsAppAccount, raw_body: bytes, signature: str | None
    ) -> None:
        if not account.app_secret:
            if settings.WHATSAPP_WEBHOOK_REQUIRE_SIGNATURE:
                logger.warning(f"Rejecting unsigned webhook for account {account.id}")
                raise WebhookSignatureError("Webhook signature cannot be verified")
            logger.warning(f"No app secret for account {account.id}; webhook not verified")
            return
        if not verify_signature(raw_body, signature, account.app_secret):
            logger.warning(f"Invalid webhook signature for account {account.id}")
            raise WebhookSignatureError("Invalid webhook signature")

    async def _set_status(
        self, account: WhatsAppAccount, event_id: str, status: str, error: str | None = None
    ) -> None:
        await self.store.update_status(account.company_id, event_id, status, error)

    async def _handle_message(
        self,
        service: MessageService,
        account: WhatsAppAccount,
        value: dict[str, Any],
        message: dict[str, Any],
        summary: IngestSummary,
    ) -> None:
        provider_id = message.get("id")
        event_id = await self.store.store_event(account.company_id, "message", message)
        if not provider_id or not message.get("from"):
            await self._set_status(account, event_id, "ignored", "missing_id_or_sender")
            summary.ignored += 1
            return

        dedup_key = f"msg_{provider_id}"
        if not await self.store.mark_seen(dedup_key):
            await self._set_status(account, event_id, "ignored", "duplicate")
            summary.duplicates += 1
            return

        columns, preview = parse_inbound_content(message)
        try:
            result = await service.record_inbound(
                phone=message["from"],
                provider_message_id=provider_id,
                columns=columns,
                preview=preview,
                received_at=parse_timestamp(message.get("timestamp")),
                profile_name=_profile_name(value, message.get("from")),
                whatsapp_account_id=account.id,
            )
        except Exception as e:
            await self._set_status(account, event_id, "failed", str(e))
            await self.store.forget(dedup_key)
            raise

        if not result.success:
            await self._set_status(account, event_id, "failed", result.error)
            await self.store.forget(dedup_key)
            summary.failed += 1
            return

        await self._set_status(account, event_id, "processed")
        summary.processed += 1

    async def _handle_status(
        self,
        service: MessageService,
        account: WhatsAppAccount,
        status: dict[str, Any],
        summary: IngestSummary,
    ) -> None:
        provider_id = status.get("id")
        status_value = status.get("status")
        event_id = await self.store.store_event(account.company_id, "status", status)
        if not provider_id or not status_value:
            await self._set_status(account, event_id, "ignored", "missing_id_or_status")
            summary.ignored += 1
            return

        # One message id carries several receipts, one per status
        dedup_key = f"status_{provider_id}_{status_value}"
        if not await self.store.mark_seen(dedup_key):
            await self._set_status(account, event_id, "ignored", "duplicate")
            summary.duplicates += 1
            return

        errors = status.get("errors") or []
        error = errors[0] if errors else {}
        error_code = str(error["code"]) if error.get("code") is not None else None
        error_message = error.get("message") or error.get("title")

        try:
            result = await service.apply_status_receipt(
                provider_id,
                status_value,
                error_code=error_code,
                error_message=error_message,
            )
        except Exception as e:
            await self._set_status(account, event_id, "failed", str(e))
            await self.store.forget(dedup_key)
            raise

        if not result.success:
            await self._set_status(account, event_id, "failed", result.error)
            await self.store.forget(dedup_key)
            summary.failed += 1
            return

        if result.data is None:
            await self._set_status(account, event_id, "ignored", "unknown_message")
            summary.ignored += 1
            return

        await self._set_status(account, event_id, "processed")
        summary.processed += 1
