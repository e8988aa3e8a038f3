"""WhatsApp account configuration endpoints."""

from fastapi import APIRouter, Query

from app.api.deps import CurrentAuthContext, DbSession, Pagination
from app.core.exceptions import unwrap
from app.schemas import (
    CursorPage,
    WhatsAppAccountCreate,
    WhatsAppAccountDetail,
    WhatsAppAccountUpdate,
)
from app.services import WhatsAppAccountService

router = APIRouter(prefix="/whatsapp-accounts", tags=["whatsapp-accounts"])


def _service(db: DbSession, auth: CurrentAuthContext) -> WhatsAppAccountService:
    return WhatsAppAccountService(db, auth.company_id, auth.user_id)


@router.get("", response_model=CursorPage[WhatsAppAccountDetail])
async def list_whatsapp_accounts(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
    search: str | None = Query(None, max_length=100),
):
    """List the company's WhatsApp accounts."""
    result = await _service(db, auth).list(search=search, cursor=page.cursor, limit=page.limit)
    return CursorPage[WhatsAppAccountDetail].from_page(unwrap(result))


@router.post("", response_model=WhatsAppAccountDetail, status_code=201)
async def create_whatsapp_account(
    data: WhatsAppAccountCreate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Register a WhatsApp Business phone number."""
    return unwrap(await _service(db, auth).create(**data.model_dump()))


@router.get("/{account_id}", response_model=WhatsAppAccountDetail)
async def get_whatsapp_account(
    account_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get account details. Credentials are never returned."""
    return unwrap(await _service(db, auth).get(account_id))


@router.patch("/{account_id}", response_model=WhatsAppAccountDetail)
async def update_whatsapp_account(
    account_id: int,
    data: WhatsAppAccountUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Update an account."""
    return unwrap(
        await _service(db, auth).update(account_id, **data.model_dump(exclude_unset=True))
    )


@router.post("/{account_id}/default", response_model=WhatsAppAccountDetail)
async def set_default_whatsapp_account(
    account_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Make the account the company's default sender."""
    return unwrap(await _service(db, auth).set_default(account_id))


@router.delete("/{account_id}", status_code=204)
async def deactivate_whatsapp_account(
    account_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Deactivate an account."""
    unwrap(await _service(db, auth).deactivate(account_id))
