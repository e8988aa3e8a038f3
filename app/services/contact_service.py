"""Contact service."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import ContactRepository
from app.db.repositories.base import Page
from app.models import Contact
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)


def _clean_tags(tags: list[str]) -> list[str]:
    """Strip blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


class ContactService:
    """Company-scoped contact operations."""

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = ContactRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("list contacts")
    async def list_contacts(
        self,
        *,
        search: str | None = None,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[Contact]]:
        page = await self.repo.list(
            company_id=self.company_id, cursor=cursor, limit=limit, search=search
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load contact")
    async def get_contact(self, contact_id: int) -> ServiceResult[Contact]:
        contact = await self.repo.get_by_company(self.company_id, contact_id)
        if not contact:
            return ServiceResult.not_found("Contact")
        return ServiceResult.ok(contact)

    @handles_db_errors("update contact")
    async def update_contact(
        self,
        contact_id: int,
        *,
        name: str | None = None,
        tags: list[str] | None = None,
    ) -> ServiceResult[Contact]:
        contact = await self.repo.get_by_company(self.company_id, contact_id)
        if not contact:
            return ServiceResult.not_found("Contact")

        changes = {}
        if name is not None:
            changes["name"] = name.strip() or None
        if tags is not None:
            changes["tags"] = _clean_tags(tags)
        if not changes:
            return ServiceResult.ok(contact)

        old_values = {key: getattr(contact, key) for key in changes}
        try:
            contact = await self.repo.update(contact, **changes)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update contact {contact_id}: {e}")
            return ServiceResult.fail("Failed to update contact", ErrorCode.UNKNOWN)

        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="contact",
            entity_id=contact_id,
            action="UPDATE",
            old_values=old_values,
            new_values=changes,
        )
        return ServiceResult.ok(contact)
