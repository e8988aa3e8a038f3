"""User endpoints."""

from fastapi import APIRouter, Query

from app.api.deps import CurrentAuthContext, DbSession, Pagination
from app.core.exceptions import unwrap
from app.models import UserRole
from app.schemas import CursorPage, UserCreate, UserDetail, UserStatusUpdate, UserUpdate
from app.services import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _service(db: DbSession, auth: CurrentAuthContext) -> UserService:
    return UserService(db, auth.company_id, auth.user_id)


@router.get("", response_model=CursorPage[UserDetail])
async def list_users(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
    search: str | None = Query(None, max_length=100),
    role: UserRole | None = None,
    is_active: bool = Query(True, description="List active or inactive users"),
):
    """List users of the caller's company."""
    result = await _service(db, auth).list_users(
        search=search,
        role=role,
        is_active=is_active,
        cursor=page.cursor,
        limit=page.limit,
    )
    return CursorPage[UserDetail].from_page(unwrap(result))


@router.post("", response_model=UserDetail, status_code=201)
async def create_user(
    data: UserCreate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Add a user to the company. Admins only."""
    return unwrap(await _service(db, auth).create_user(**data.model_dump()))


@router.get("/me", response_model=UserDetail)
async def get_current_user_profile(
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get the current user's profile."""
    return unwrap(await _service(db, auth).get_user(auth.user_id))


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(
    user_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get a user of the company."""
    return unwrap(await _service(db, auth).get_user(user_id))


@router.patch("/{user_id}", response_model=UserDetail)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Update a user. Admins only."""
    return unwrap(
        await _service(db, auth).update_user(user_id, **data.model_dump(exclude_unset=True))
    )


@router.post("/{user_id}/status", response_model=UserDetail)
async def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Activate or deactivate a user. Admins only."""
    return unwrap(await _service(db, auth).set_active(user_id, data.is_active))
