"""Audit log repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository
from app.models import AuditLog


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for audit log entries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AuditLog)

    async def list_for_entity(
        self,
        company_id: int,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditLog]:
        """Audit trail of one entity, oldest first."""
        stmt = (
            select(AuditLog)
            .where(
                AuditLog.company_id == company_id,
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
