"""Audit trail of changes made by users."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.base import utcnow

JsonType = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """One change to one entity, append-only."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JsonType)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JsonType)
    changed_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    change_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_audit_logs_company_entity", "company_id", "entity_type", "entity_id"),
    )
