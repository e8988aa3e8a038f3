"""Pydantic schemas for request/response models."""

from app.schemas.api_key import ApiKeyCreate, ApiKeyDetail, ApiKeyResponse
from app.schemas.common import CursorPage
from app.schemas.contact import ContactDetail, ContactSummary, ContactUpdate
from app.schemas.conversation import (
    ConversationAssign,
    ConversationDetail,
    NoteCreate,
    NoteDetail,
    NoteUpdate,
)
from app.schemas.message import (
    AudioContent,
    ImageContent,
    MessageContent,
    MessageDetail,
    SendMessageRequest,
    SendMessageResponse,
    TextContent,
    content_from_message,
    parse_content,
)
from app.schemas.order import OrderCreate, OrderDetail, OrderStatusUpdate, OrderUpdate
from app.schemas.user import UserCreate, UserDetail, UserStatusUpdate, UserUpdate
from app.schemas.whatsapp_account import (
    WhatsAppAccountCreate,
    WhatsAppAccountDetail,
    WhatsAppAccountUpdate,
)

__all__ = [
    # Common
    "CursorPage",
    # Contact
    "ContactDetail",
    "ContactSummary",
    "ContactUpdate",
    # Conversation
    "ConversationAssign",
    "ConversationDetail",
    # Note
    "NoteCreate",
    "NoteDetail",
    "NoteUpdate",
    # Message
    "AudioContent",
    "ImageContent",
    "MessageContent",
    "MessageDetail",
    "SendMessageRequest",
    "SendMessageResponse",
    "TextContent",
    "content_from_message",
    "parse_content",
    # WhatsApp account
    "WhatsAppAccountCreate",
    "WhatsAppAccountDetail",
    "WhatsAppAccountUpdate",
    # API Key
    "ApiKeyCreate",
    "ApiKeyDetail",
    "ApiKeyResponse",
    # Order
    "OrderCreate",
    "OrderDetail",
    "OrderStatusUpdate",
    "OrderUpdate",
    # User
    "UserCreate",
    "UserDetail",
    "UserStatusUpdate",
    "UserUpdate",
]
