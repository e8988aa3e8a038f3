"""WhatsApp Business account credentials."""

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin


class WhatsAppAccount(Base, TimestampMixin, LifecycleMixin):
    """A WhatsApp Cloud API phone number a company sends from."""

    __tablename__ = "whatsapp_accounts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number_id: Mapped[str] = mapped_column(String(100), nullable=False)
    business_account_id: Mapped[str] = mapped_column(String(100), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    app_secret: Mapped[str | None] = mapped_column(String(255))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))

    __table_args__ = (
        Index(
            "ix_whatsapp_accounts_company_phone",
            "company_id",
            "phone_number_id",
            unique=True,
        ),
        Index("ix_whatsapp_accounts_company_name", "company_id", "name", unique=True),
        Index("ix_whatsapp_accounts_phone_number_id", "phone_number_id"),
    )
