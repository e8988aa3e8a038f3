"""Shared model mixins and lifecycle state."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


class RecordState(str, Enum):
    """Lifecycle state of a soft-deletable record."""

    ACTIVE = "active"
    DELETED = "deleted"


class TimestampMixin:
    """Adds created_at/updated_at columns.

    Timestamps are assigned in Python so every row carries the same
    precision; cursor pagination compares them as a sort key.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class LifecycleMixin:
    """Adds an explicit active/deleted state column."""

    state: Mapped[RecordState] = mapped_column(
        SQLEnum(RecordState, name="record_state"),
        default=RecordState.ACTIVE,
        nullable=False,
    )
