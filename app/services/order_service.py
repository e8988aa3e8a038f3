"""Order service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import ErrorCode, ServiceResult
from app.db.repositories import ContactRepository, ConversationRepository, OrderRepository
from app.db.repositories.base import Page
from app.models import TERMINAL_ORDER_STATUSES, Order, OrderStatus
from app.services.audit_log import AuditLogService
from app.services.guards import handles_db_errors

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("customer_name", "customer_phone", "delivery_address", "order_description")
_UPDATABLE_FIELDS = (*_REQUIRED_FIELDS, "notes")


def _clean(values: dict) -> tuple[dict, str | None]:
    """Strip text fields; return the cleaned values and the first empty required field."""
    cleaned = {
        key: value.strip() if isinstance(value, str) else value for key, value in values.items()
    }
    for key in _REQUIRED_FIELDS:
        if key in cleaned and not cleaned[key]:
            return cleaned, key
    return cleaned, None


class OrderService:
    """Company-scoped orders.

    ``delivered`` and ``cancelled`` are terminal: once there, an order keeps
    its status. Cancelling an order also deactivates it, and an inactive
    order can no longer be edited.
    """

    def __init__(self, db: AsyncSession, company_id: int, user_id: int):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id
        self.repo = OrderRepository(db)
        self.contact_repo = ContactRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.audit = AuditLogService(db)

    @handles_db_errors("list orders")
    async def list_orders(
        self,
        *,
        status: OrderStatus | None = None,
        contact_id: int | None = None,
        conversation_id: int | None = None,
        search: str | None = None,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ServiceResult[Page[Order]]:
        page = await self.repo.list(
            company_id=self.company_id,
            cursor=cursor,
            limit=limit,
            status=status,
            contact_id=contact_id,
            conversation_id=conversation_id,
            search=search,
        )
        return ServiceResult.ok(page)

    @handles_db_errors("load order")
    async def get_order(self, order_id: int) -> ServiceResult[Order]:
        order = await self.repo.get_by_company(self.company_id, order_id)
        if not order:
            return ServiceResult.not_found("Order")
        return ServiceResult.ok(order)

    @handles_db_errors("create order")
    async def create_order(
        self,
        *,
        contact_id: int,
        customer_name: str,
        customer_phone: str,
        delivery_address: str,
        order_description: str,
        conversation_id: int | None = None,
        status: OrderStatus = OrderStatus.DRAFT,
        notes: str | None = None,
    ) -> ServiceResult[Order]:
        """Create an order for a contact of the company.

        A linked conversation must belong to the same contact.
        """
        values, missing = _clean(
            {
                "customer_name": customer_name,
                "customer_phone": customer_phone,
                "delivery_address": delivery_address,
                "order_description": order_description,
                "notes": notes,
            }
        )
        if missing:
            return ServiceResult.fail(f"{missing} is required", ErrorCode.VALIDATION_ERROR)

        contact = await self.contact_repo.get_by_company(self.company_id, contact_id)
        if not contact:
            return ServiceResult.not_found("Contact")

        if conversation_id is not None:
            conversation = await self.conversation_repo.get_by_company(
                self.company_id, conversation_id
            )
            if not conversation:
                return ServiceResult.not_found("Conversation")
            if conversation.contact_id != contact_id:
                return ServiceResult.fail(
                    "Conversation belongs to another contact", ErrorCode.VALIDATION_ERROR
                )

        order = await self.repo.create(
            company_id=self.company_id,
            contact_id=contact_id,
            conversation_id=conversation_id,
            created_by=self.user_id,
            updated_by=self.user_id,
            contact_name_snapshot=contact.name or "",
            contact_phone_snapshot=contact.phone,
            status=status,
            is_active=status != OrderStatus.CANCELLED,
            **values,
        )

        logger.info(
            f"Created order {order.id} for contact {contact_id} of company {self.company_id}"
        )
        await self._audit(order.id, "CREATE", None, {**values, "status": status.value})
        return ServiceResult.ok(order)

    @handles_db_errors("update order")
    async def update_order(self, order_id: int, **changes) -> ServiceResult[Order]:
        """Update an active order's details; only fields passed with a non-None value change."""
        order = await self.repo.get_by_company(self.company_id, order_id)
        if not order or not order.is_active:
            return ServiceResult.not_found("Order")

        changes, missing = _clean(
            {
                key: value
                for key, value in changes.items()
                if key in _UPDATABLE_FIELDS and value is not None
            }
        )
        if missing:
            return ServiceResult.fail(f"{missing} is required", ErrorCode.VALIDATION_ERROR)
        if not changes:
            return ServiceResult.ok(order)

        old_values = {key: getattr(order, key) for key in changes}
        order = await self.repo.update(order, updated_by=self.user_id, **changes)

        await self._audit(order_id, "UPDATE", old_values, changes)
        return ServiceResult.ok(order)

    @handles_db_errors("update order status")
    async def update_status(self, order_id: int, status: OrderStatus) -> ServiceResult[Order]:
        """Move an order to ``status``. Cancelling also deactivates the order."""
        order = await self.repo.get_by_company(self.company_id, order_id)
        if not order:
            return ServiceResult.not_found("Order")
        if order.status == status:
            return ServiceResult.ok(order)
        if order.status in TERMINAL_ORDER_STATUSES:
            return ServiceResult.fail(
                f"Cannot change the status of a {order.status.value} order", ErrorCode.CONFLICT
            )

        old_values = {"status": order.status.value, "is_active": order.is_active}
        is_active = False if status == OrderStatus.CANCELLED else order.is_active
        order = await self.repo.update(
            order, status=status, is_active=is_active, updated_by=self.user_id
        )

        logger.info(f"Order {order_id} moved to {status.value}")
        await self._audit(
            order_id, "UPDATE_STATUS", old_values, {"status": status.value, "is_active": is_active}
        )
        return ServiceResult.ok(order)

    @handles_db_errors("deactivate order")
    async def deactivate_order(self, order_id: int) -> ServiceResult[None]:
        """Deactivate an order, cancelling it unless it was already delivered."""
        order = await self.repo.get_by_company(self.company_id, order_id)
        if not order:
            return ServiceResult.not_found("Order")

        old_values = {"status": order.status.value, "is_active": order.is_active}
        status = order.status if order.status == OrderStatus.DELIVERED else OrderStatus.CANCELLED
        await self.repo.update(order, status=status, is_active=False, updated_by=self.user_id)

        await self._audit(
            order_id, "DEACTIVATE", old_values, {"status": status.value, "is_active": False}
        )
        return ServiceResult.ok(None)

    async def _audit(self, order_id: int, action: str, old_values, new_values) -> None:
        await self.audit.log(
            company_id=self.company_id,
            user_id=self.user_id,
            entity_type="order",
            entity_id=order_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
        )
