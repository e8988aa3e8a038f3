"""User model for company staff."""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin


class UserRole(str, Enum):
    """User role enum."""

    ADMIN = "admin"
    AGENT = "agent"


class User(Base, TimestampMixin, LifecycleMixin):
    """Represents a staff member of a company."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), default=UserRole.AGENT)
    # Inactive users keep their history but can no longer authenticate
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_users_company_created", "company_id", "created_at", "id"),
    )
