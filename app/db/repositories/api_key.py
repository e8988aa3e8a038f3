"""API key repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import ApiKey, RecordState


class ApiKeyRepository(BaseRepository[ApiKey]):
    """Repository for API key operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ApiKey)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        user_id: int | None = None,
    ) -> Page[ApiKey]:
        """List active API keys of a company."""
        base_query = select(ApiKey).where(
            ApiKey.company_id == company_id,
            ApiKey.state == RecordState.ACTIVE,
        )

        if user_id is not None:
            base_query = base_query.where(ApiKey.user_id == user_id)

        return await self.paginate(
            base_query,
            sort_column=ApiKey.created_at,
            sort_value=lambda api_key: api_key.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, api_key_id: int) -> ApiKey | None:
        """Get an active API key ensuring it belongs to the company."""
        stmt = select(ApiKey).where(
            ApiKey.company_id == company_id,
            ApiKey.id == api_key_id,
            ApiKey.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_prefix(self, key_prefix: str) -> list[ApiKey]:
        """Get active API keys by prefix."""
        stmt = select(ApiKey).where(
            ApiKey.key_prefix == key_prefix,
            ApiKey.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def revoke(self, api_key: ApiKey) -> ApiKey:
        """Revoke an API key."""
        return await self.update(api_key, state=RecordState.DELETED)
