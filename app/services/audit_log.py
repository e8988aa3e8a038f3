"""Audit trail writer."""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AuditLog

logger = logging.getLogger(__name__)


class AuditLogService:
    """Append entries to the audit log without ever failing the caller."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        *,
        company_id: int,
        user_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        change_reason: str | None = None,
    ) -> AuditLog | None:
        """Insert one audit entry and commit it.

        Returns the entry, or None when it could not be written.
        """
        entry = AuditLog(
            company_id=company_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
            changed_by=user_id,
            change_reason=change_reason,
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Failed to write audit log {action} for {entity_type} {entity_id} "
                f"(company {company_id}): {e}"
            )
            return None
        return entry
