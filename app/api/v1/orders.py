"""Order endpoints."""

from fastapi import APIRouter, Query

from app.api.deps import CurrentAuthContext, DbSession, Pagination
from app.core.exceptions import unwrap
from app.models import OrderStatus
from app.schemas import CursorPage, OrderCreate, OrderDetail, OrderStatusUpdate, OrderUpdate
from app.services import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _service(db: DbSession, auth: CurrentAuthContext) -> OrderService:
    return OrderService(db, auth.company_id, auth.user_id)


@router.get("", response_model=CursorPage[OrderDetail])
async def list_orders(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
    status: OrderStatus | None = None,
    contact_id: int | None = None,
    conversation_id: int | None = None,
    search: str | None = Query(None, max_length=100),
):
    """List the company's orders, newest first."""
    result = await _service(db, auth).list_orders(
        status=status,
        contact_id=contact_id,
        conversation_id=conversation_id,
        search=search,
        cursor=page.cursor,
        limit=page.limit,
    )
    return CursorPage[OrderDetail].from_page(unwrap(result))


@router.post("", response_model=OrderDetail, status_code=201)
async def create_order(
    data: OrderCreate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Create an order for a contact."""
    return unwrap(await _service(db, auth).create_order(**data.model_dump()))


@router.get("/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get order details."""
    return unwrap(await _service(db, auth).get_order(order_id))


@router.patch("/{order_id}", response_model=OrderDetail)
async def update_order(
    order_id: int,
    data: OrderUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Update an active order's details."""
    return unwrap(
        await _service(db, auth).update_order(order_id, **data.model_dump(exclude_unset=True))
    )


@router.post("/{order_id}/status", response_model=OrderDetail)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Move an order to another status. Delivered and cancelled orders are final."""
    return unwrap(await _service(db, auth).update_status(order_id, data.status))


@router.delete("/{order_id}", status_code=204)
async def deactivate_order(
    order_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Deactivate an order."""
    unwrap(await _service(db, auth).deactivate_order(order_id))
