"""Order schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.order import OrderStatus


class OrderCreate(BaseModel):
    """Schema for creating an order."""

    contact_id: int = Field(..., gt=0)
    conversation_id: int | None = Field(None, gt=0)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    delivery_address: str = Field(..., min_length=1, max_length=2000)
    order_description: str = Field(..., min_length=1, max_length=4000)
    status: OrderStatus = OrderStatus.DRAFT
    notes: str | None = Field(None, max_length=4000)


class OrderUpdate(BaseModel):
    """Schema for updating an order's details. Status has its own endpoint."""

    customer_name: str | None = Field(None, min_length=1, max_length=255)
    customer_phone: str | None = Field(None, min_length=1, max_length=50)
    delivery_address: str | None = Field(None, min_length=1, max_length=2000)
    order_description: str | None = Field(None, min_length=1, max_length=4000)
    notes: str | None = Field(None, max_length=4000)


class OrderStatusUpdate(BaseModel):
    """Schema for moving an order to another status."""

    status: OrderStatus


class OrderDetail(BaseModel):
    """Schema for order details."""

    id: int
    contact_id: int
    conversation_id: int | None
    created_by: int
    updated_by: int | None
    contact_name_snapshot: str
    contact_phone_snapshot: str
    customer_name: str
    customer_phone: str
    delivery_address: str
    order_description: str
    status: OrderStatus
    notes: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
