"""API key schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    """Schema for creating an API key for the calling user."""

    name: str = Field(..., min_length=1, max_length=100)
    expires_at: datetime | None = None


class ApiKeyResponse(BaseModel):
    """Schema for API key creation response (includes the actual key)."""

    id: int
    name: str
    key: str  # The actual API key, only shown once on creation
    key_prefix: str
    user_id: int
    expires_at: datetime | None
    created_at: datetime


class ApiKeyDetail(BaseModel):
    """Schema for API key details (without the actual key)."""

    id: int
    name: str
    key_prefix: str
    user_id: int
    expires_at: datetime | None
    last_used_at: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True
