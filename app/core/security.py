"""API key issuing and verification.

Keys look like ``<API_KEY_PREFIX><random>``. Only a bcrypt hash is stored,
next to a short lookup prefix so verification hashes against a handful of
candidates instead of every key.
"""

import logging
import secrets
from datetime import datetime, timezone

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.repositories.api_key import ApiKeyRepository
from app.models import ApiKey, RecordState, User

logger = logging.getLogger(__name__)

KEY_PREFIX_LENGTH = 8


def generate_api_key() -> str:
    """Generate a new API key with prefix."""
    return f"{settings.API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def get_key_prefix(api_key: str) -> str:
    """Return the lookup prefix stored alongside the hash."""
    return api_key[: len(settings.API_KEY_PREFIX) + KEY_PREFIX_LENGTH]


def hash_api_key(api_key: str) -> str:
    """Hash an API key using bcrypt."""
    return bcrypt.hashpw(api_key.encode(), bcrypt.gensalt()).decode()


def verify_api_key_hash(api_key: str, hashed: str) -> bool:
    """Verify an API key against its hash."""
    return bcrypt.checkpw(api_key.encode(), hashed.encode())


async def issue_api_key(
    db: AsyncSession,
    *,
    company_id: int,
    user_id: int,
    name: str,
    expires_at: datetime | None = None,
) -> tuple[ApiKey, str]:
    """Create a key for a user.

    Returns:
        Tuple of (stored key, raw key). The raw key cannot be recovered later.
    """
    raw_key = generate_api_key()
    api_key = await ApiKeyRepository(db).create(
        company_id=company_id,
        user_id=user_id,
        name=name,
        key_hash=hash_api_key(raw_key),
        key_prefix=get_key_prefix(raw_key),
        expires_at=expires_at,
    )
    logger.info(f"Issued API key {api_key.id} for user {user_id} of company {company_id}")
    return api_key, raw_key


def _is_expired(api_key: ApiKey) -> bool:
    expires_at = api_key.expires_at
    if expires_at is None:
        return False
    # SQLite hands back naive datetimes
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < datetime.now(timezone.utc)


async def verify_api_key(db: AsyncSession, api_key: str) -> ApiKey | None:
    """Return the active, unexpired ApiKey matching ``api_key``, else None.

    Keys of deactivated users are rejected as well.
    """
    if not api_key.startswith(settings.API_KEY_PREFIX):
        return None

    candidates = await ApiKeyRepository(db).get_by_prefix(get_key_prefix(api_key))
    for candidate in candidates:
        if not verify_api_key_hash(api_key, candidate.key_hash):
            continue
        if _is_expired(candidate):
            logger.info(f"Rejected expired API key {candidate.id}")
            return None

        owner = await db.get(User, candidate.user_id)
        if not owner or owner.state != RecordState.ACTIVE or not owner.is_active:
            logger.info(f"Rejected API key {candidate.id} of inactive user {candidate.user_id}")
            return None

        candidate.last_used_at = datetime.now(timezone.utc)
        await db.commit()
        return candidate

    return None
