"""Contact schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ContactUpdate(BaseModel):
    """Schema for updating a contact."""

    name: str | None = Field(None, max_length=255)
    tags: list[str] | None = Field(None, description="Replaces the contact's tags")


class ContactSummary(BaseModel):
    """Contact fields embedded in other resources."""

    id: int
    phone: str
    name: str | None

    class Config:
        from_attributes = True


class ContactDetail(BaseModel):
    """Schema for contact details."""

    id: int
    phone: str
    name: str | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
