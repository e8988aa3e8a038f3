"""Business logic services."""

from app.services.audit_log import AuditLogService
from app.services.contact_service import ContactService
from app.services.conversation_service import ConversationFilters, ConversationService
from app.services.message_service import MessageService, SentMessage
from app.services.note_service import NoteService
from app.services.order_service import OrderService
from app.services.retry import RetryOutcome, call_with_retry
from app.services.user_service import UserService
from app.services.webhook_ingest import WebhookIngestService
from app.services.whatsapp_account_service import WhatsAppAccountService
from app.services.whatsapp_client import WhatsAppCloudClient, WhatsAppSendError

__all__ = [
    "AuditLogService",
    "ContactService",
    "ConversationFilters",
    "ConversationService",
    "MessageService",
    "NoteService",
    "OrderService",
    "RetryOutcome",
    "SentMessage",
    "UserService",
    "WebhookIngestService",
    "WhatsAppAccountService",
    "WhatsAppCloudClient",
    "WhatsAppSendError",
    "call_with_retry",
]
