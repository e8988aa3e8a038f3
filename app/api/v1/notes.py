"""Conversation note endpoints."""

from fastapi import APIRouter

from app.api.deps import CurrentAuthContext, DbSession
from app.core.exceptions import unwrap
from app.schemas import NoteDetail, NoteUpdate
from app.services import NoteService

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("/{note_id}", response_model=NoteDetail)
async def get_note(
    note_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Get note details."""
    return unwrap(await NoteService(db, auth.company_id, auth.user_id).get(note_id))


@router.patch("/{note_id}", response_model=NoteDetail)
async def update_note(
    note_id: int,
    data: NoteUpdate,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Edit a note. Only its author may do so."""
    service = NoteService(db, auth.company_id, auth.user_id)
    return unwrap(
        await service.update(note_id, content=data.content, is_pinned=data.is_pinned)
    )


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: int,
    db: DbSession,
    auth: CurrentAuthContext,
):
    """Delete a note. Only its author may do so."""
    unwrap(await NoteService(db, auth.company_id, auth.user_id).delete(note_id))
