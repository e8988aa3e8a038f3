"""User repository."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import RecordState, User, UserRole


class UserRepository(BaseRepository[User]):
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        search: str | None = None,
        role: UserRole | None = None,
        is_active: bool | None = True,
    ) -> Page[User]:
        """List users of a company, newest first.

        Only active users are listed by default; ``is_active=None`` lists both.
        """
        base_query = select(User).where(
            User.company_id == company_id,
            User.state == RecordState.ACTIVE,
        )

        if is_active is not None:
            base_query = base_query.where(User.is_active == is_active)
        if role:
            base_query = base_query.where(User.role == role)

        if search:
            search_term = f"%{search}%"
            base_query = base_query.where(
                or_(
                    User.name.ilike(search_term),
                    User.email.ilike(search_term),
                )
            )

        return await self.paginate(
            base_query,
            sort_column=User.created_at,
            sort_value=lambda user: user.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, user_id: int) -> User | None:
        """Get a user ensuring it belongs to the company. Inactive users are included."""
        stmt = select(User).where(
            User.company_id == company_id,
            User.id == user_id,
            User.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email."""
        stmt = select(User).where(User.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
