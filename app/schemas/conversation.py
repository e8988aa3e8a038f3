"""Conversation and note schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.conversation import ConversationStatus
from app.schemas.contact import ContactSummary


class ConversationDetail(BaseModel):
    """Schema for conversation details."""

    id: int
    contact_id: int
    contact: ContactSummary | None = None
    status: ConversationStatus
    unread_count: int
    last_message_id: int | None
    last_message_preview: str | None
    last_message_time: datetime | None
    assigned_to_user_id: int | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConversationAssign(BaseModel):
    """Schema for assigning a conversation; null unassigns."""

    user_id: int | None = None


class NoteCreate(BaseModel):
    """Schema for creating a note."""

    content: str = Field(..., min_length=1, max_length=5000)
    is_pinned: bool = False


class NoteUpdate(BaseModel):
    """Schema for updating a note."""

    content: str | None = Field(None, min_length=1, max_length=5000)
    is_pinned: bool | None = None


class NoteDetail(BaseModel):
    """Schema for note details."""

    id: int
    conversation_id: int
    content: str
    is_pinned: bool
    created_by: int
    updated_by: int | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
