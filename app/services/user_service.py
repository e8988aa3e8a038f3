"""User management service."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import UserRepository
from app.db.repositories.base import Page
from app.models import User, UserRole
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 120


def _clean_name(name: str) -> str | None:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        return None
    return name


def _clean_email(email: str) -> str | None:
    email = email.strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain or len(email) > 255:
        return None
    return email


class UserService:
    """Company-scoped staff management.

    Anyone may read the user list; creating, editing and (de)activating
    users is reserved to admins. Passwords and sessions are handled outside
    this API, users authenticate with API keys only.
    """

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = UserRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("list users")
    async def list_users(
        self,
        *,
        search: str | None = None,
        role: UserRole | None = None,
        is_active: bool | None = True,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[User]]:
        page = await self.repo.list(
            company_id=self.company_id,
            cursor=cursor,
            limit=limit,
            search=search,
            role=role,
            is_active=is_active,
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load user")
    async def get_user(self, user_id: int) -> ServiceResult[User]:
        user = await self.repo.get_by_company(self.company_id, user_id)
        if not user:
            return ServiceResult.not_found("User")
        return ServiceResult.ok(user)

    @handles_db_errors("create user")
    async def create_user(
        self,
        *,
        name: str,
        email: str,
        role: UserRole = UserRole.AGENT,
        is_active: bool = True,
    ) -> ServiceResult[User]:
        denied = await self._require_admin()
        if denied:
            return denied

        clean_name = _clean_name(name)
        clean_email = _clean_email(email)
        if clean_name is None:
            return ServiceResult.fail(
                f"Name must be {NAME_MIN_LENGTH} to {NAME_MAX_LENGTH} characters",
                ErrorCode.VALIDATION_ERROR,
            )
        if clean_email is None:
            return ServiceResult.fail("Invalid email address", ErrorCode.VALIDATION_ERROR)

        if await self.repo.get_by_email(clean_email):
            return ServiceResult.fail(
                "A user with this email already exists", ErrorCode.CONFLICT
            )

        try:
            user = await self.repo.create(
                company_id=self.company_id,
                name=clean_name,
                email=clean_email,
                role=role,
                is_active=is_active,
            )
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Duplicate user email for company {self.company_id}: {e}")
            return ServiceResult.fail(
                "A user with this email already exists", ErrorCode.CONFLICT
            )

        logger.info(f"Created user {user.id} for company {self.company_id}")
        await self._audit(
            user.id,
            "CREATE",
            None,
            {"name": clean_name, "email": clean_email, "role": role.value, "is_active": is_active},
        )
        return ServiceResult.ok(user)

    @handles_db_errors("update user")
    async def update_user(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        role: UserRole | None = None,
    ) -> ServiceResult[User]:
        denied = await self._require_admin()
        if denied:
            return denied

        user = await self.repo.get_by_company(self.company_id, user_id)
        if not user:
            return ServiceResult.not_found("User")

        changes = {}
        if name is not None:
            changes["name"] = _clean_name(name)
            if changes["name"] is None:
                return ServiceResult.fail(
                    f"Name must be {NAME_MIN_LENGTH} to {NAME_MAX_LENGTH} characters",
                    ErrorCode.VALIDATION_ERROR,
                )
        if email is not None:
            changes["email"] = _clean_email(email)
            if changes["email"] is None:
                return ServiceResult.fail("Invalid email address", ErrorCode.VALIDATION_ERROR)
            existing = await self.repo.get_by_email(changes["email"])
            if existing and existing.id != user_id:
                return ServiceResult.fail(
                    "A user with this email already exists", ErrorCode.CONFLICT
                )
        if role is not None:
            changes["role"] = role
        if not changes:
            return ServiceResult.ok(user)

        old_values = {key: _plain(getattr(user, key)) for key in changes}
        try:
            user = await self.repo.update(user, **changes)
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Duplicate user email on update {user_id}: {e}")
            return ServiceResult.fail(
                "A user with this email already exists", ErrorCode.CONFLICT
            )

        await self._audit(
            user_id,
            "UPDATE",
            old_values,
            {key: _plain(value) for key, value in changes.items()},
        )
        return ServiceResult.ok(user)

    @handles_db_errors("change user status")
    async def set_active(self, user_id: int, is_active: bool) -> ServiceResult[User]:
        """Activate or deactivate a user. Inactive users cannot authenticate."""
        denied = await self._require_admin()
        if denied:
            return denied

        user = await self.repo.get_by_company(self.company_id, user_id)
        if not user:
            return ServiceResult.not_found("User")
        if user.is_active == is_active:
            return ServiceResult.fail(
                "User already has the requested status", ErrorCode.VALIDATION_ERROR
            )
        if user_id == self.user_id and not is_active:
            return ServiceResult.fail(
                "You cannot deactivate yourself", ErrorCode.VALIDATION_ERROR
            )

        user = await self.repo.update(user, is_active=is_active)

        logger.info(
            f"{'Activated' if is_active else 'Deactivated'} user {user_id} "
            f"of company {self.company_id}"
        )
        await self._audit(
            user_id,
            "ACTIVATE" if is_active else "DEACTIVATE",
            {"is_active": not is_active},
            {"is_active": is_active},
        )
        return ServiceResult.ok(user)

    async def _require_admin(self) -> ServiceResult | None:
        actor = await self.repo.get_by_company(self.company_id, self.user_id)
        if not actor or actor.role != UserRole.ADMIN:
            return ServiceResult.fail("Only admins can manage users", ErrorCode.FORBIDDEN)
        return None

    async def _audit(self, user_id: int, action: str, old_values, new_values) -> None:
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="user",
            entity_id=user_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
        )


def _plain(value):
    return getattr(value, "value", value)
