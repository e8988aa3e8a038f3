"""WhatsApp account configuration service."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import WhatsAppAccountRepository
from app.db.repositories.base import Page
from app.models import RecordState, WhatsAppAccount
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)

# Credentials are never written to the audit log
_SECRET_FIELDS = frozenset({"access_token", "app_secret"})
_UPDATABLE_FIELDS = (
    "name",
    "phone_number_id",
    "business_account_id",
    "access_token",
    "app_secret",
    "is_default",
)


def _audit_values(values: dict[str, Any]) -> dict[str, Any]:
    return {
        key: ("***" if key in _SECRET_FIELDS and value else value)
        for key, value in values.items()
    }


class WhatsAppAccountService:
    """Company-scoped management of WhatsApp Business phone numbers.

    At most one account per company is the default. Setting a new default
    clears the previous one in the same transaction.
    """

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = WhatsAppAccountRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("list WhatsApp accounts")
    async def list(
        self,
        *,
        search: str | None = None,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[WhatsAppAccount]]:
        page = await self.repo.list(
            company_id=self.company_id, cursor=cursor, limit=limit, search=search
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load WhatsApp account")
    async def get(self, account_id: int) -> ServiceResult[WhatsAppAccount]:
        account = await self.repo.get_by_company(self.company_id, account_id)
        if not account:
            return ServiceResult.not_found("WhatsApp account")
        return ServiceResult.ok(account)

    async def get_sending_account(self) -> WhatsAppAccount | None:
        """Account outbound messages go through: the default, else the newest."""
        return await self.repo.get_sending_account(self.company_id)

    @handles_db_errors("create WhatsApp account")
    async def create(
        self,
        *,
        name: str,
        phone_number_id: str,
        business_account_id: str,
        access_token: str,
        app_secret: str | None = None,
        is_default: bool = False,
    ) -> ServiceResult[WhatsAppAccount]:
        duplicate = await self.repo.find_duplicate(
            self.company_id, name=name, phone_number_id=phone_number_id
        )
        if duplicate:
            return ServiceResult.fail(
                "An account with this name or phone number ID already exists",
                ErrorCode.CONFLICT,
            )

        account = WhatsAppAccount(
            company_id=self.company_id,
            name=name,
            phone_number_id=phone_number_id,
            business_account_id=business_account_id,
            access_token=access_token,
            app_secret=app_secret,
            is_default=is_default,
            created_by=self.user_id,
            updated_by=self.user_id,
        )
        try:
            if is_default:
                await self.repo.clear_default(self.company_id)
            self.db.add(account)
            await self.db.commit()
            await self.db.refresh(account)
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Duplicate WhatsApp account for company {self.company_id}: {e}")
            return ServiceResult.fail(
                "An account with this name or phone number ID already exists",
                ErrorCode.CONFLICT,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create WhatsApp account for company {self.company_id}: {e}")
            return ServiceResult.fail("Failed to create WhatsApp account", ErrorCode.UNKNOWN)

        logger.info(f"Created WhatsApp account {account.id} for company {self.company_id}")
        await self._audit(
            account.id,
            "CREATE",
            None,
            _audit_values(
                {
                    "name": name,
                    "phone_number_id": phone_number_id,
                    "business_account_id": business_account_id,
                    "access_token": access_token,
                    "app_secret": app_secret,
                    "is_default": is_default,
                }
            ),
        )
        return ServiceResult.ok(account)

    @handles_db_errors("update WhatsApp account")
    async def update(self, account_id: int, **changes) -> ServiceResult[WhatsAppAccount]:
        """Update an account; only fields passed with a non-None value change."""
        account = await self.repo.get_by_company(self.company_id, account_id)
        if not account:
            return ServiceResult.not_found("WhatsApp account")

        changes = {
            key: value
            for key, value in changes.items()
            if key in _UPDATABLE_FIELDS and value is not None
        }
        if not changes:
            return ServiceResult.ok(account)

        if "name" in changes or "phone_number_id" in changes:
            duplicate = await self.repo.find_duplicate(
                self.company_id,
                name=changes.get("name"),
                phone_number_id=changes.get("phone_number_id"),
                exclude_id=account_id,
            )
            if duplicate:
                return ServiceResult.fail(
                    "An account with this name or phone number ID already exists",
                    ErrorCode.CONFLICT,
                )

        old_values = {key: getattr(account, key) for key in changes}
        try:
            if changes.get("is_default"):
                await self.repo.clear_default(self.company_id, exclude_id=account_id)
            for key, value in changes.items():
                setattr(account, key, value)
            account.updated_by = self.user_id
            await self.db.commit()
            await self.db.refresh(account)
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Duplicate WhatsApp account on update {account_id}: {e}")
            return ServiceResult.fail(
                "An account with this name or phone number ID already exists",
                ErrorCode.CONFLICT,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update WhatsApp account {account_id}: {e}")
            return ServiceResult.fail("Failed to update WhatsApp account", ErrorCode.UNKNOWN)

        await self._audit(account_id, "UPDATE", _audit_values(old_values), _audit_values(changes))
        return ServiceResult.ok(account)

    @handles_db_errors("set default WhatsApp account")
    async def set_default(self, account_id: int) -> ServiceResult[WhatsAppAccount]:
        """Make the account the company's default sender."""
        result = await self.get(account_id)
        if not result.success or result.data.is_default:
            return result
        return await self.update(account_id, is_default=True)

    @handles_db_errors("deactivate WhatsApp account")
    async def deactivate(self, account_id: int) -> ServiceResult[None]:
        """Soft-delete the account. A deleted account is never the default."""
        account = await self.repo.get_by_company(self.company_id, account_id)
        if not account:
            return ServiceResult.not_found("WhatsApp account")

        was_default = account.is_default
        try:
            await self.repo.update(
                account,
                state=RecordState.DELETED,
                is_default=False,
                updated_by=self.user_id,
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to deactivate WhatsApp account {account_id}: {e}")
            return ServiceResult.fail("Failed to deactivate WhatsApp account", ErrorCode.UNKNOWN)

        logger.info(f"Deactivated WhatsApp account {account_id} for company {self.company_id}")
        await self._audit(
            account_id,
            "DEACTIVATE",
            {"state": RecordState.ACTIVE.value, "is_default": was_default},
            {"state": RecordState.DELETED.value, "is_default": False},
        )
        return ServiceResult.ok(None)

    async def _audit(self, account_id: int, action: str, old_values, new_values) -> None:
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="whatsapp_account",
            entity_id=account_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
        )
