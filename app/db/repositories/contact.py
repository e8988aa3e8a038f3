"""Contact repository."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import Contact, RecordState


class ContactRepository(BaseRepository[Contact]):
    """Repository for contact operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Contact)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        search: str | None = None,
    ) -> Page[Contact]:
        """List active contacts of a company, newest first."""
        base_query = select(Contact).where(
            Contact.company_id == company_id,
            Contact.state == RecordState.ACTIVE,
        )

        if search:
            search_term = f"%{search}%"
            base_query = base_query.where(
                or_(
                    Contact.name.ilike(search_term),
                    Contact.phone.ilike(search_term),
                )
            )

        return await self.paginate(
            base_query,
            sort_column=Contact.created_at,
            sort_value=lambda contact: contact.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, contact_id: int) -> Contact | None:
        """Get an active contact ensuring it belongs to the company."""
        stmt = select(Contact).where(
            Contact.company_id == company_id,
            Contact.id == contact_id,
            Contact.state == RecordState.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_phone(self, company_id: int, phone: str) -> Contact | None:
        """Get contact by normalized phone number for a company."""
        stmt = select(Contact).where(
            Contact.company_id == company_id,
            Contact.phone == phone,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        company_id: int,
        phone: str,
        **kwargs,
    ) -> tuple[Contact, bool]:
        """Get existing contact or create a new one. Returns (contact, created)."""
        contact = await self.get_by_phone(company_id, phone)
        if contact:
            if contact.state != RecordState.ACTIVE:
                contact = await self.update(contact, state=RecordState.ACTIVE)
            return contact, False

        contact = await self.create(
            company_id=company_id,
            phone=phone,
            tags=[],
            **kwargs,
        )
        return contact, True
