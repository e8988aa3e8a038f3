"""Contact model for WhatsApp contacts."""

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin


class Contact(Base, TimestampMixin, LifecycleMixin):
    """A phone-number identity scoped to a company."""

    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)

    phone: Mapped[str] = mapped_column(String(20), nullable=False)  # +15551234567
    name: Mapped[str | None] = mapped_column(String(255))
    tags: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list
    )

    # Relationships
    conversations: Mapped[list["Conversation"]] = relationship(  # noqa: F821
        back_populates="contact"
    )

    __table_args__ = (
        Index("ix_contacts_company_phone", "company_id", "phone", unique=True),
        Index("ix_contacts_company_created", "company_id", "created_at", "id"),
    )
