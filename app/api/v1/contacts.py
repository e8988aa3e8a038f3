"""Contact management endpoints."""

from fastapi import APIRouter, Query

from app.api.deps import CurrentAuthContext, DbSession, Pagination
from app.core.exceptions import unwrap
from app.schemas import ContactDetail, ContactUpdate, CursorPage
from app.services import ContactService

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("", response_model=CursorPage[ContactDetail])
async def list_contacts(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
    search: str | None = Query(None, max_length=100),
):
    """List contacts of the company, newest first."""
    service = ContactService(db, auth.company_id, auth.user_id)
    result = await service.list_contacts(search=search, cursor=page.cursor, limit=page.limit)
    return CursorPage[ContactDetail].from_page(unwrap(result))


@router.get("/{contact_id}", response_model=ContactDetail)
async def get_contact(
    contact_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get contact details."""
    service = ContactService(db, auth.company_id, auth.user_id)
    return unwrap(await service.get_contact(contact_id))


@router.patch("/{contact_id}", response_model=ContactDetail)
async def update_contact(
    contact_id: int,
    data: ContactUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Update a contact's name or tags."""
    service = ContactService(db, auth.company_id, auth.user_id)
    return unwrap(await service.update_contact(contact_id, name=data.name, tags=data.tags))
