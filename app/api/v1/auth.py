"""API key management endpoints."""

from fastapi import APIRouter

from app.api.deps import CurrentAuthContext, DbSession, Pagination
from app.core.exceptions import NotFoundError
from app.core.security import issue_api_key
from app.db.repositories import ApiKeyRepository
from app.schemas import ApiKeyCreate, ApiKeyDetail, ApiKeyResponse, CursorPage

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/api-keys", response_model=ApiKeyResponse, status_code=201)
async def create_api_key(
    data: ApiKeyCreate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Create a new API key for the calling user.

    The actual key is only returned once during creation.
    Store it securely as it cannot be retrieved again.
    """
    api_key, raw_key = await issue_api_key(
        db,
        company_id=auth.company_id,
        user_id=auth.user_id,
        name=data.name,
        expires_at=data.expires_at,
    )

    return ApiKeyResponse(
        id=api_key.id,
        name=api_key.name,
        key=raw_key,  # Only time we return the actual key
        key_prefix=api_key.key_prefix,
        user_id=api_key.user_id,
        expires_at=api_key.expires_at,
        created_at=api_key.created_at,
    )


@router.get("/api-keys", response_model=CursorPage[ApiKeyDetail])
async def list_api_keys(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
):
    """List the calling user's API keys."""
    result = await ApiKeyRepository(db).list(
        company_id=auth.company_id,
        user_id=auth.user_id,
        cursor=page.cursor,
        limit=page.limit,
    )
    return CursorPage[ApiKeyDetail].from_page(result)


@router.delete("/api-keys/{api_key_id}", status_code=204)
async def revoke_api_key(
    api_key_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Revoke one of the calling user's API keys."""
    repo = ApiKeyRepository(db)
    api_key = await repo.get_by_company(auth.company_id, api_key_id)
    if not api_key or api_key.user_id != auth.user_id:
        raise NotFoundError("API Key", str(api_key_id))

    await repo.revoke(api_key)
