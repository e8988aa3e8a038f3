"""Conversation endpoints."""

from typing import Literal

from fastapi import APIRouter, Query

from app.api.deps import CurrentAuthContext, DbSession, MessageServiceDep, Pagination
from app.core.exceptions import unwrap
from app.models import ConversationStatus
from app.schemas import (
    ConversationAssign,
    ConversationDetail,
    CursorPage,
    MessageDetail,
    NoteCreate,
    NoteDetail,
)
from app.services import ConversationFilters, ConversationService, NoteService

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _service(db: DbSession, auth: CurrentAuthContext) -> ConversationService:
    return ConversationService(db, auth.company_id, auth.user_id)


@router.get("", response_model=CursorPage[ConversationDetail])
async def list_conversations(
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
    status: Literal["active", "archived", "all"] = Query("active"),
    unread_only: bool = False,
    assigned_to_user_id: int | None = None,
    search: str | None = Query(None, max_length=100),
):
    """List conversations by most recent activity."""
    filters = ConversationFilters(
        status=None if status == "all" else ConversationStatus(status),
        unread_only=unread_only,
        assigned_to_user_id=assigned_to_user_id,
        search=search or None,
    )
    result = await _service(db, auth).list_conversations(
        filters, cursor=page.cursor, limit=page.limit
    )
    return CursorPage[ConversationDetail].from_page(unwrap(result))


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get conversation details."""
    return unwrap(await _service(db, auth).get_conversation(conversation_id))


@router.get("/{conversation_id}/messages", response_model=CursorPage[MessageDetail])
async def list_conversation_messages(
    conversation_id: int,
    service: MessageServiceDep,
    page: Pagination,
):
    """List a conversation's messages, newest first."""
    result = await service.list_messages(conversation_id, cursor=page.cursor, limit=page.limit)
    return CursorPage[MessageDetail].from_page(unwrap(result))


@router.post("/{conversation_id}/read", response_model=ConversationDetail)
async def mark_conversation_read(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Reset the unread counter."""
    return unwrap(await _service(db, auth).mark_read(conversation_id))


@router.post("/{conversation_id}/archive", response_model=ConversationDetail)
async def archive_conversation(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Archive a conversation."""
    return unwrap(await _service(db, auth).archive(conversation_id))


@router.post("/{conversation_id}/unarchive", response_model=ConversationDetail)
async def unarchive_conversation(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Move an archived conversation back to the active list."""
    return unwrap(await _service(db, auth).unarchive(conversation_id))


@router.post("/{conversation_id}/assign", response_model=ConversationDetail)
async def assign_conversation(
    conversation_id: int,
    data: ConversationAssign,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Assign the conversation to a user of the company, or unassign with null."""
    return unwrap(await _service(db, auth).assign(conversation_id, data.user_id))


@router.post("/{conversation_id}/clear", response_model=ConversationDetail)
async def clear_conversation(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Delete every message of the conversation and keep the conversation."""
    return unwrap(await _service(db, auth).clear(conversation_id))


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Delete a conversation together with its messages."""
    unwrap(await _service(db, auth).delete(conversation_id))


@router.get("/{conversation_id}/notes", response_model=CursorPage[NoteDetail])
async def list_conversation_notes(
    conversation_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
    page: Pagination,
):
    """List internal notes of a conversation, newest first."""
    service = NoteService(db, auth.company_id, auth.user_id)
    result = await service.list_for_conversation(
        conversation_id, cursor=page.cursor, limit=page.limit
    )
    return CursorPage[NoteDetail].from_page(unwrap(result))


@router.post("/{conversation_id}/notes", response_model=NoteDetail, status_code=201)
async def create_conversation_note(
    conversation_id: int,
    data: NoteCreate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Add an internal note to a conversation."""
    service = NoteService(db, auth.company_id, auth.user_id)
    return unwrap(await service.create(conversation_id, data.content, data.is_pinned))
