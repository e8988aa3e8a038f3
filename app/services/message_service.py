"""Message sending and receiving service."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.phone import normalize_phone
from app.core.result import ErrorCode, ServiceResult
from app.core.telemetry import get_tracer, record_result
from app.db.repositories import (
    ContactRepository,
    ConversationRepository,
    MessageRepository,
    WhatsAppAccountRepository,
)
from app.db.repositories.base import Page
from app.models import ConversationStatus, Message, WhatsAppAccount
from app.models.base import utcnow
from app.models.message import MessageDirection, MessageStatus
from app.schemas.message import content_from_message, parse_content
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors
from app.services.whatsapp_client import WhatsAppCloudClient

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

NO_ACTIVE_ACCOUNT = "NO_ACTIVE_ACCOUNT"
NETWORK_ERROR = "NETWORK_ERROR"

# Receipts only ever move an outbound message forward along this order
_DELIVERY_RANK = {
    MessageStatus.SENT: 1,
    MessageStatus.DELIVERED: 2,
    MessageStatus.READ: 3,
}

ClientFactory = Callable[[WhatsAppAccount], WhatsAppCloudClient]


def default_client_factory(account: WhatsAppAccount) -> WhatsAppCloudClient:
    return WhatsAppCloudClient(account.phone_number_id, account.access_token)


@dataclass(frozen=True)
class SentMessage:
    """What a successful send produced."""

    conversation_id: int
    contact_id: int
    message_id: int
    message: Message
    created_contact: bool
    created_conversation: bool


def _phone_tail(phone: str) -> str:
    return f"...{phone[-4:]}"


class MessageService:
    """Service for sending outbound messages and recording inbound ones.

    All operations are scoped to ``company_id``. ``user_id`` is recorded as
    the author of outbound messages and audit entries; it is None for
    webhook-driven work.
    """

    def __init__(
        self,
        db: AsyncSession,
        company_id: int,
        user_id: int | None = None,
        *,
        client_factory: ClientFactory | None = None,
        max_attempts: int | None = None,
        retry_base_delay_ms: int | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.client_factory = client_factory or default_client_factory
        self.max_attempts = max_attempts or settings.WHATSAPP_SEND_MAX_ATTEMPTS
        self.retry_base_delay_ms = (
            retry_base_delay_ms
            if retry_base_delay_ms is not None
            else settings.WHATSAPP_SEND_RETRY_BASE_DELAY_MS
        )
        self.sleep = sleep
        self.contact_repo = ContactRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.account_repo = WhatsAppAccountRepository(db)
        self.audit = AuditLogService(db)

    async def send_message(self, phone: str, content: Any) -> ServiceResult[SentMessage]:
        """Send a message to a phone number, creating contact and conversation as needed.

        Args:
            phone: Recipient phone number in any common notation
            content: A content variant, its dict form, or a plain text body

        Returns:
            ServiceResult with a SentMessage, or the code of the failed step
        """
        with tracer.start_as_current_span("message.send") as span:
            span.set_attribute("crm.company_id", self.company_id)

            try:
                normalized = normalize_phone(phone)
                parsed = parse_content(content)
            except ValueError as e:
                logger.info(f"Rejected send for company {self.company_id}: {e}")
                return ServiceResult.fail(str(e), ErrorCode.VALIDATION_ERROR)

            span.set_attribute("crm.content_type", parsed.type)
            result = await self._deliver(normalized, parsed)
            record_result(span, result)
            return result

    async def _deliver(self, phone: str, content) -> ServiceResult[SentMessage]:
        message_id: int | None = None

        try:
            try:
                contact, created_contact = await self.contact_repo.get_or_create(
                    self.company_id, phone
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(
                    f"Contact create failed for company {self.company_id} "
                    f"phone {_phone_tail(phone)}: {e}"
                )
                return ServiceResult.fail(
                    "Failed to create contact", ErrorCode.CONTACT_CREATE_FAILED
                )

            try:
                conversation, created_conversation = (
                    await self.conversation_repo.get_or_create_for_contact(
                        self.company_id, contact.id
                    )
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(
                    f"Conversation create failed for company {self.company_id} "
                    f"contact {contact.id}: {e}"
                )
                return ServiceResult.fail(
                    "Failed to create conversation", ErrorCode.CONVERSATION_CREATE_FAILED
                )

            try:
                message = await self.message_repo.create(
                    company_id=self.company_id,
                    conversation_id=conversation.id,
                    contact_id=contact.id,
                    direction=MessageDirection.OUTBOUND,
                    status=MessageStatus.SENDING,
                    created_by=self.user_id,
                    **content.to_columns(),
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(
                    f"Message insert failed for company {self.company_id} "
                    f"conversation {conversation.id}: {e}"
                )
                return ServiceResult.fail(
                    "Failed to save message", ErrorCode.MESSAGE_INSERT_FAILED
                )
            message_id = message.id

            account = await self.account_repo.get_sending_account(self.company_id)
            if account is None:
                error = "No active WhatsApp account is configured for this company"
                logger.warning(f"{error} (company {self.company_id}, message {message_id})")
                await self._mark_failed(message, NO_ACTIVE_ACCOUNT, error)
                await self._audit_send(message, "MESSAGE_SEND_FAILED", error)
                return ServiceResult.fail(error, ErrorCode.WHATSAPP_SEND_FAILED)

            client = self.client_factory(account)
            outcome = await client.send_with_retry(
                phone,
                content,
                max_attempts=self.max_attempts,
                base_delay_ms=self.retry_base_delay_ms,
                sleep=self.sleep,
            )

            if not outcome.ok:
                error_code = str(outcome.status_code) if outcome.status_code else NETWORK_ERROR
                error = str(outcome.error)
                logger.error(
                    f"WhatsApp send failed for message {message_id} "
                    f"to {_phone_tail(phone)} after {outcome.attempts} attempt(s): "
                    f"{error_code} {error}"
                )
                message.whatsapp_account_id = account.id
                await self._mark_failed(message, error_code, error)
                await self._audit_send(message, "MESSAGE_SEND_FAILED", error)
                return ServiceResult.fail(
                    f"Failed to send WhatsApp message: {error}",
                    ErrorCode.WHATSAPP_SEND_FAILED,
                )

            # Message status and conversation summary land in one commit
            message.status = MessageStatus.SENT
            message.provider_message_id = outcome.value
            message.whatsapp_account_id = account.id
            self.conversation_repo.apply_last_message(conversation, message, content.preview())
            await self.db.commit()
            await self.db.refresh(message)

            logger.info(
                f"Sent message {message_id} to {_phone_tail(phone)} "
                f"(provider id {outcome.value}, attempts {outcome.attempts})"
            )
            sent = SentMessage(
                conversation_id=conversation.id,
                contact_id=contact.id,
                message_id=message.id,
                message=message,
                created_contact=created_contact,
                created_conversation=created_conversation,
            )
            await self._audit_send(message, "MESSAGE_SENT")
            return ServiceResult.ok(sent)

        except Exception as e:
            logger.exception(
                f"Unexpected error sending to {_phone_tail(phone)} "
                f"for company {self.company_id}: {e}"
            )
            await self.db.rollback()
            if message_id is not None:
                await self._mark_failed_by_id(message_id, ErrorCode.UNKNOWN.value, str(e))
            return ServiceResult.fail(str(e), ErrorCode.UNKNOWN)

    async def _mark_failed(self, message: Message, error_code: str, error: str) -> None:
        message.status = MessageStatus.FAILED
        message.error_code = error_code
        message.error_message = error
        await self.db.commit()
        await self.db.refresh(message)

    async def _mark_failed_by_id(self, message_id: int, error_code: str, error: str) -> None:
        """Mark a message failed after the session was rolled back."""
        try:
            await self.db.execute(
                update(Message)
                .where(Message.id == message_id, Message.status == MessageStatus.SENDING)
                .values(
                    status=MessageStatus.FAILED,
                    error_code=error_code,
                    error_message=error,
                    updated_at=utcnow(),
                )
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Could not mark message {message_id} as failed: {e}")

    async def _audit_send(
        self, message: Message, action: str, error: str | None = None
    ) -> None:
        if self.user_id is None:
            return
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="message",
            entity_id=message.id,
            action=action,
            new_values={
                "status": message.status.value,
                "conversation_id": message.conversation_id,
                "contact_id": message.contact_id,
                "whatsapp_account_id": message.whatsapp_account_id,
                "provider_message_id": message.provider_message_id,
                "error_code": message.error_code,
            },
            change_reason=error,
        )

    @handles_db_errors("retry message")
    async def retry_failed_message(self, message_id: int) -> ServiceResult[SentMessage]:
        """Send a failed message again as a new message.

        The failed row is left as it is; the retry goes through the whole
        pipeline from contact resolution onwards.
        """
        message = await self.message_repo.get_by_company(self.company_id, message_id)
        if not message:
            return ServiceResult.not_found("Message")
        if message.direction != MessageDirection.OUTBOUND or message.status != MessageStatus.FAILED:
            return ServiceResult.fail(
                "Only failed outbound messages can be retried", ErrorCode.VALIDATION_ERROR
            )

        contact = await self.contact_repo.get_by_company(self.company_id, message.contact_id)
        if not contact:
            return ServiceResult.not_found("Contact")

        try:
            content = content_from_message(message)
        except ValueError as e:
            return ServiceResult.fail(str(e), ErrorCode.VALIDATION_ERROR)

        logger.info(f"Retrying failed message {message_id} for company {self.company_id}")
        return await self.send_message(contact.phone, content)

    @handles_db_errors("list messages")
    async def list_messages(
        self,
        conversation_id: int,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[Message]]:
        """List a conversation's messages, newest first."""
        conversation = await self.conversation_repo.get_by_company(
            self.company_id, conversation_id
        )
        if not conversation:
            return ServiceResult.not_found("Conversation")

        page = await self.message_repo.list_for_conversation(
            company_id=self.company_id,
            conversation_id=conversation_id,
            cursor=cursor,
            limit=limit,
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load message")
    async def get_message(self, message_id: int) -> ServiceResult[Message]:
        """Get one message of the company."""
        message = await self.message_repo.get_by_company(self.company_id, message_id)
        if not message:
            return ServiceResult.not_found("Message")
        return ServiceResult.ok(message)

    @handles_db_errors("record inbound message")
    async def record_inbound(
        self,
        *,
        phone: str,
        provider_message_id: str,
        columns: dict[str, Any],
        preview: str,
        received_at: datetime | None = None,
        profile_name: str | None = None,
        whatsapp_account_id: int | None = None,
    ) -> ServiceResult[Message | None]:
        """Store a message received through the webhook.

        A provider id that is already stored is skipped and yields None.
        The message row and the conversation summary share one commit.
        """
        try:
            normalized = normalize_phone(phone)
        except ValueError as e:
            return ServiceResult.fail(str(e), ErrorCode.VALIDATION_ERROR)

        existing = await self.message_repo.get_by_provider_id(
            self.company_id, provider_message_id
        )
        if existing:
            logger.debug(f"Skipping already stored inbound message {provider_message_id}")
            return ServiceResult.ok(None)

        try:
            contact, _ = await self.contact_repo.get_or_create(self.company_id, normalized)
            if profile_name and not contact.name:
                contact = await self.contact_repo.update(contact, name=profile_name)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Inbound contact create failed for company {self.company_id} "
                f"phone {_phone_tail(normalized)}: {e}"
            )
            return ServiceResult.fail("Failed to create contact", ErrorCode.CONTACT_CREATE_FAILED)

        try:
            conversation, _ = await self.conversation_repo.get_or_create_for_contact(
                self.company_id, contact.id
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Inbound conversation create failed for company {self.company_id} "
                f"contact {contact.id}: {e}"
            )
            return ServiceResult.fail(
                "Failed to create conversation", ErrorCode.CONVERSATION_CREATE_FAILED
            )

        try:
            message = Message(
                company_id=self.company_id,
                conversation_id=conversation.id,
                contact_id=contact.id,
                whatsapp_account_id=whatsapp_account_id,
                direction=MessageDirection.INBOUND,
                status=MessageStatus.DELIVERED,
                provider_message_id=provider_message_id,
                **columns,
            )
            if received_at is not None:
                message.created_at = received_at
            self.db.add(message)
            await self.db.flush()

            if conversation.status == ConversationStatus.ARCHIVED:
                conversation.status = ConversationStatus.ACTIVE
            self.conversation_repo.apply_last_message(
                conversation, message, preview, increment_unread=True
            )
            await self.db.commit()
            await self.db.refresh(message)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Inbound message insert failed for company {self.company_id} "
                f"provider id {provider_message_id}: {e}"
            )
            return ServiceResult.fail("Failed to save message", ErrorCode.MESSAGE_INSERT_FAILED)

        logger.info(
            f"Stored inbound message {message.id} from {_phone_tail(normalized)} "
            f"in conversation {conversation.id}"
        )
        return ServiceResult.ok(message)

    @handles_db_errors("apply status receipt")
    async def apply_status_receipt(
        self,
        provider_message_id: str,
        status: str,
        *,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> ServiceResult[Message | None]:
        """Apply a delivery receipt to the message it refers to.

        Unknown provider ids yield None. ``delivered`` and ``read`` only move
        a message forward; ``failed`` records the provider error and leaves
        the send status alone.
        """
        message = await self.message_repo.get_by_provider_id(
            self.company_id, provider_message_id
        )
        if not message:
            logger.debug(f"Receipt for unknown provider id {provider_message_id}")
            return ServiceResult.ok(None)

        message.provider_status = status

        try:
            target = MessageStatus(status)
        except ValueError:
            target = None

        if target == MessageStatus.FAILED:
            message.error_code = error_code or "PROVIDER_FAILED"
            message.error_message = error_message
        elif (
            target in _DELIVERY_RANK
            and message.status in _DELIVERY_RANK
            and _DELIVERY_RANK[target] > _DELIVERY_RANK[message.status]
        ):
            message.status = target

        try:
            await self.db.commit()
            await self.db.refresh(message)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to apply {status} receipt to message {message.id}: {e}")
            return ServiceResult.fail("Failed to update message", ErrorCode.UNKNOWN)

        return ServiceResult.ok(message)

