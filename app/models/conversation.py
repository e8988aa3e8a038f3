"""Conversation model, one thread per company and contact."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin

PREVIEW_MAX_LENGTH = 255


class ConversationStatus(str, Enum):
    """Conversation status enum."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class Conversation(Base, TimestampMixin, LifecycleMixin):
    """Represents the message thread between a company and one contact."""

    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    contact_id: Mapped[int] = mapped_column(ForeignKey("contacts.id"), nullable=False)

    status: Mapped[ConversationStatus] = mapped_column(
        SQLEnum(ConversationStatus), default=ConversationStatus.ACTIVE
    )
    unread_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Summary of the most recent message, kept in step with message inserts
    last_message_id: Mapped[int | None] = mapped_column(Integer)
    last_message_preview: Mapped[str | None] = mapped_column(String(PREVIEW_MAX_LENGTH))
    last_message_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    assigned_to_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))

    # Relationships
    contact: Mapped["Contact"] = relationship(  # noqa: F821
        back_populates="conversations", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_conversations_company_contact", "company_id", "contact_id", unique=True),
        Index("ix_conversations_company_last_message", "company_id", "last_message_time", "id"),
        Index("ix_conversations_assigned_to", "assigned_to_user_id", "company_id"),
    )
