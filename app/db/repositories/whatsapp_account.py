"""WhatsApp account repository."""

from __future__ import annotations

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import RecordState, WhatsAppAccount


class WhatsAppAccountRepository(BaseRepository[WhatsAppAccount]):
    """Repository for WhatsApp account operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, WhatsAppAccount)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        search: str | None = None,
    ) -> Page[WhatsAppAccount]:
        """List active accounts of a company, newest first."""
        base_query = select(WhatsAppAccount).where(
            WhatsAppAccount.company_id == company_id,
            WhatsAppAccount.state == RecordState.ACTIVE,
        )

        if search:
            search_term = f"%{search}%"
            base_query = base_query.where(
                or_(
                    WhatsAppAccount.name.ilike(search_term),
                    WhatsAppAccount.phone_number_id.ilike(search_term),
                )
            )

        return await self.paginate(
            base_query,
            sort_column=WhatsAppAccount.created_at,
            sort_value=lambda account: account.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(
        self, company_id: int, account_id: int
    ) -> WhatsAppAccount | None:
        """Get an active account ensuring it belongs to the company."""
        stmt = select(WhatsAppAccount).where(
            WhatsAppAccount.company_id == company_id,
            WhatsAppAccount.id == account_id,
            WhatsAppAccount.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_phone_number_id(self, phone_number_id: str) -> WhatsAppAccount | None:
        """Get the active account receiving webhooks for a phone number ID."""
        stmt = (
            select(WhatsAppAccount)
            .where(
                WhatsAppAccount.phone_number_id == phone_number_id,
                WhatsAppAccount.state == RecordState.ACTIVE,
            )
            .order_by(WhatsAppAccount.created_at.desc(), WhatsAppAccount.id.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_duplicate(
        self,
        company_id: int,
        *,
        name: str | None = None,
        phone_number_id: str | None = None,
        exclude_id: int | None = None,
    ) -> WhatsAppAccount | None:
        """Find an account of the company using the same name or phone number ID.

        Deleted accounts count too, since the unique indexes cover them.
        """
        clauses = []
        if name is not None:
            clauses.append(WhatsAppAccount.name == name)
        if phone_number_id is not None:
            clauses.append(WhatsAppAccount.phone_number_id == phone_number_id)
        if not clauses:
            return None

        stmt = select(WhatsAppAccount).where(
            WhatsAppAccount.company_id == company_id,
            or_(*clauses),
        )
        if exclude_id is not None:
            stmt = stmt.where(WhatsAppAccount.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_sending_account(self, company_id: int) -> WhatsAppAccount | None:
        """Pick the account outbound messages go through.

        The active default account wins, otherwise the most recently
        created active account.
        """
        stmt = (
            select(WhatsAppAccount)
            .where(
                WhatsAppAccount.company_id == company_id,
                WhatsAppAccount.state == RecordState.ACTIVE,
            )
            .order_by(
                WhatsAppAccount.is_default.desc(),
                WhatsAppAccount.created_at.desc(),
                WhatsAppAccount.id.desc(),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def clear_default(self, company_id: int, exclude_id: int | None = None) -> None:
        """Unset the default flag on the company's accounts (no commit)."""
        stmt = (
            update(WhatsAppAccount)
            .where(
                WhatsAppAccount.company_id == company_id,
                WhatsAppAccount.is_default == True,  # noqa: E712
            )
            .values(is_default=False)
        )
        if exclude_id is not None:
            stmt = stmt.where(WhatsAppAccount.id != exclude_id)
        await self.session.execute(stmt)
