"""Repository classes for database operations."""

from app.db.repositories.api_key import ApiKeyRepository
from app.db.repositories.audit_log import AuditLogRepository
from app.db.repositories.base import BaseRepository, Page
from app.db.repositories.contact import ContactRepository
from app.db.repositories.conversation import ConversationRepository
from app.db.repositories.message import MessageRepository
from app.db.repositories.note import NoteRepository
from app.db.repositories.order import OrderRepository
from app.db.repositories.user import UserRepository
from app.db.repositories.whatsapp_account import WhatsAppAccountRepository

__all__ = [
    "BaseRepository",
    "Page",
    "ApiKeyRepository",
    "AuditLogRepository",
    "ContactRepository",
    "ConversationRepository",
    "MessageRepository",
    "NoteRepository",
    "OrderRepository",
    "UserRepository",
    "WhatsAppAccountRepository",
]
