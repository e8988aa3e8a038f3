"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for adding a user to the company."""

    name: str = Field(..., min_length=2, max_length=120)
    email: str = Field(..., max_length=255)
    role: UserRole = UserRole.AGENT
    is_active: bool = True


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    name: str | None = Field(None, min_length=2, max_length=120)
    email: str | None = Field(None, max_length=255)
    role: UserRole | None = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserDetail(BaseModel):
    """Schema for user details."""

    id: int
    company_id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
