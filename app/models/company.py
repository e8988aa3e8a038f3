"""Company model, the tenant boundary."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.base import LifecycleMixin, TimestampMixin


class Company(Base, TimestampMixin, LifecycleMixin):
    """A customer of the CRM. Every other record is scoped to one."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(255))
