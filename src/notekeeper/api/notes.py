"""Note API routes.

Learn: These routes are the HTTP interface to the note service. The
service asks the policy engine before touching storage; routes just
translate HTTP to service calls. Query parameter names (sortBy,
createdFrom, userId, ...) match what the web frontend sends.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.dependencies import get_current_user
from notekeeper.auth.policy import Caller
from notekeeper.db.engine import get_db
from notekeeper.schemas.auth import MessageResponse
from notekeeper.schemas.note import NoteCreate, NoteEnvelope, NoteList, NoteRead, NoteUpdate
from notekeeper.services.filters import NoteFilters
from notekeeper.services.note_service import NoteService

router = APIRouter(prefix="/notes")


def _svc(db: AsyncSession = Depends(get_db)) -> NoteService:
    return NoteService(db)


@router.post("", response_model=NoteEnvelope, status_code=201)
async def create_note(
    body: NoteCreate,
    caller: Caller = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    """Create a note. Admins may pass userId to create it for another user."""
    note = await svc.create_note(caller, content=body.content, owner_id=body.user_id)
    return NoteEnvelope(note=NoteRead.model_validate(note))


@router.get("", response_model=NoteList)
async def list_notes(
    page: Optional[int] = Query(None, description="1-based page number"),
    limit: Optional[int] = Query(None, description="Page size, 1-100 (default 10)"),
    q: Optional[str] = Query(None, description="Case-insensitive text search"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None, description="asc or desc"),
    created_from: Optional[str] = Query(None, alias="createdFrom"),
    created_to: Optional[str] = Query(None, alias="createdTo"),
    updated_from: Optional[str] = Query(None, alias="updatedFrom"),
    updated_to: Optional[str] = Query(None, alias="updatedTo"),
    user_id: Optional[str] = Query(None, alias="userId", description="Owner (admins only)"),
    caller: Caller = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    """List the caller's notes (or, for admins, a chosen user's notes)."""
    filters = NoteFilters.from_query(
        owner_id=user_id,
        q=q,
        created_from=created_from,
        created_to=created_to,
        updated_from=updated_from,
        updated_to=updated_to,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    result = await svc.list_notes(caller, filters)
    return NoteList(
        notes=[NoteRead.model_validate(n) for n in result.items],
        page=result.page,
        limit=result.page_size,
        total=result.total,
    )


@router.get("/{note_id}", response_model=NoteEnvelope)
async def get_note(
    note_id: str,
    caller: Caller = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    note = await svc.get_note(caller, note_id)
    return NoteEnvelope(note=NoteRead.model_validate(note))


@router.put("/{note_id}", response_model=NoteEnvelope)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    caller: Caller = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    note = await svc.update_note(caller, note_id, body.content)
    return NoteEnvelope(note=NoteRead.model_validate(note))


@router.delete("/{note_id}", response_model=MessageResponse)
async def delete_note(
    note_id: str,
    caller: Caller = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    await svc.delete_note(caller, note_id)
    return MessageResponse(message="Note deleted")
