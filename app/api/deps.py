"""Common API dependencies."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import UnauthorizedError
from app.core.security import verify_api_key
from app.db.session import get_db
from app.services.message_service import MessageService


async def get_redis() -> AsyncGenerator[Redis, None]:
    """Dependency for getting async Redis client."""
    redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        yield redis
    finally:
        await redis.aclose()


@dataclass(frozen=True)
class AuthContext:
    """Who is calling: one user acting inside one company."""

    company_id: int
    user_id: int
    api_key_id: int | None = None


async def get_auth_context(
    x_api_key: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Resolve the X-API-Key header into an AuthContext.

    Raises:
        UnauthorizedError: If the header is missing, unknown, revoked or expired
    """
    if not x_api_key:
        raise UnauthorizedError("Missing X-API-Key header")

    api_key = await verify_api_key(db, x_api_key)
    if not api_key:
        raise UnauthorizedError("Invalid API key")

    return AuthContext(
        company_id=api_key.company_id,
        user_id=api_key.user_id,
        api_key_id=api_key.id,
    )


@dataclass(frozen=True)
class PageParams:
    """Cursor and page size query parameters shared by list endpoints."""

    cursor: str | None
    limit: int


def get_page_params(
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size"
    ),
) -> PageParams:
    return PageParams(cursor=cursor, limit=limit)


# Type aliases for cleaner annotations
DbSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[Redis, Depends(get_redis)]
CurrentAuthContext = Annotated[AuthContext, Depends(get_auth_context)]
Pagination = Annotated[PageParams, Depends(get_page_params)]


def get_message_service(db: DbSession, auth: CurrentAuthContext) -> MessageService:
    """Message service bound to the caller's company and user."""
    return MessageService(db, auth.company_id, auth.user_id)


MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]
