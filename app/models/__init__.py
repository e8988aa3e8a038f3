"""SQLAlchemy models."""

from app.models.api_key import ApiKey
from app.models.audit_log import AuditLog
from app.models.base import RecordState
from app.models.company import Company
from app.models.contact import Contact
from app.models.conversation import Conversation, ConversationStatus
from app.models.conversation_note import ConversationNote
from app.models.message import Message, MessageDirection, MessageStatus, MessageType
from app.models.order import TERMINAL_ORDER_STATUSES, Order, OrderStatus
from app.models.user import User, UserRole
from app.models.whatsapp_account import WhatsAppAccount

__all__ = [
    "ApiKey",
    "AuditLog",
    "Company",
    "Contact",
    "Conversation",
    "ConversationNote",
    "ConversationStatus",
    "Message",
    "MessageDirection",
    "MessageStatus",
    "MessageType",
    "Order",
    "OrderStatus",
    "RecordState",
    "TERMINAL_ORDER_STATUSES",
    "User",
    "UserRole",
    "WhatsAppAccount",
]
