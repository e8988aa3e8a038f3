"""WhatsApp account schemas.

Access tokens and app secrets are write-only: they are accepted on
create/update and never serialized back.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class WhatsAppAccountCreate(BaseModel):
    """Schema for registering a WhatsApp Business phone number."""

    name: str = Field(..., min_length=1, max_length=255)
    phone_number_id: str = Field(..., min_length=1, max_length=100)
    business_account_id: str = Field(..., min_length=1, max_length=100)
    access_token: str = Field(..., min_length=1)
    app_secret: str | None = Field(None, max_length=255)
    is_default: bool = False


class WhatsAppAccountUpdate(BaseModel):
    """Schema for updating an account."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone_number_id: str | None = Field(None, min_length=1, max_length=100)
    business_account_id: str | None = Field(None, min_length=1, max_length=100)
    access_token: str | None = Field(None, min_length=1)
    app_secret: str | None = Field(None, max_length=255)
    is_default: bool | None = None


class WhatsAppAccountDetail(BaseModel):
    """Schema for account details."""

    id: int
    name: str
    phone_number_id: str
    business_account_id: str
    is_default: bool
    created_by: int | None
    updated_by: int | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
