"""Order repository."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base import BaseRepository, Page
from app.models import Order, OrderStatus


class OrderRepository(BaseRepository[Order]):
    """Repository for order operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Order)

    async def list(
        self,
        *,
        company_id: int,
        cursor: str | None = None,
        limit: int = 30,
        status: OrderStatus | None = None,
        contact_id: int | None = None,
        conversation_id: int | None = None,
        search: str | None = None,
    ) -> Page[Order]:
        """List orders of a company, newest first. Inactive orders are included."""
        base_query = select(Order).where(Order.company_id == company_id)

        if status:
            base_query = base_query.where(Order.status == status)
        if contact_id is not None:
            base_query = base_query.where(Order.contact_id == contact_id)
        if conversation_id is not None:
            base_query = base_query.where(Order.conversation_id == conversation_id)

        if search:
            search_term = f"%{search}%"
            base_query = base_query.where(
                or_(
                    Order.customer_name.ilike(search_term),
                    Order.order_description.ilike(search_term),
                    Order.contact_name_snapshot.ilike(search_term),
                    Order.contact_phone_snapshot.ilike(search_term),
                )
            )

        return await self.paginate(
            base_query,
            sort_column=Order.created_at,
            sort_value=lambda order: order.created_at,
            cursor=cursor,
            limit=limit,
        )

    async def get_by_company(self, company_id: int, order_id: int) -> Order | None:
        """Get an order ensuring it belongs to the company."""
        stmt = select(Order).where(Order.company_id == company_id, Order.id == order_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
