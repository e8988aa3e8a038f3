"""Message model for WhatsApp messages."""

from enum import Enum

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin


class MessageDirection(str, Enum):
    """Message direction enum."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageStatus(str, Enum):
    """Message status enum.

    Outbound sends go sending -> sent | failed exactly once. Delivery
    receipts may then move a sent message to delivered and read.
    """

    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class MessageType(str, Enum):
    """Message content type enum."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


class Message(Base, TimestampMixin, LifecycleMixin):
    """Represents a WhatsApp message."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    conversation_id: Mapped[int] = mapped_column(ForeignKey("conversations.id"), nullable=False)
    contact_id: Mapped[int] = mapped_column(ForeignKey("contacts.id"), nullable=False)
    whatsapp_account_id: Mapped[int | None] = mapped_column(ForeignKey("whatsapp_accounts.id"))

    direction: Mapped[MessageDirection] = mapped_column(
        SQLEnum(MessageDirection), nullable=False
    )
    status: Mapped[MessageStatus] = mapped_column(
        SQLEnum(MessageStatus), default=MessageStatus.SENDING
    )

    content_type: Mapped[MessageType] = mapped_column(
        SQLEnum(MessageType), default=MessageType.TEXT
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)  # body, caption or placeholder
    media_url: Mapped[str | None] = mapped_column(String(1000))
    media_id: Mapped[str | None] = mapped_column(String(100))

    provider_message_id: Mapped[str | None] = mapped_column(String(255))
    provider_status: Mapped[str | None] = mapped_column(String(50))
    error_code: Mapped[str | None] = mapped_column(String(50))
    error_message: Mapped[str | None] = mapped_column(Text)

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at", "id"),
        Index("ix_messages_company_status", "company_id", "status"),
        Index("ix_messages_provider_message_id", "provider_message_id"),
    )
