"""Note service — scoped CRUD over notes.

Learn: Every operation follows the same shape:
1. Load the facts the policy needs (the note, or the target owner)
2. Ask auth.policy.authorize() — it raises Forbidden/Unauthenticated
3. Only then read or write

Listing never trusts the caller to scope itself: the owner filter is always
present in the WHERE clause, and a non-admin can only ever name themselves.
Concurrent edits are last-write-wins (no version column).
"""

import uuid
from dataclasses import replace

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.policy import Caller, Operation, Resource, authorize
from notekeeper.db.models import Note, User, to_uuid, utcnow
from notekeeper.errors import InvalidInput, NotFound
from notekeeper.services.filters import NoteFilters, Page, SortField, SortOrder, like_pattern

logger = structlog.get_logger()

_SORT_COLUMNS = {
    SortField.CREATED_AT: Note.created_at,
    SortField.UPDATED_AT: Note.updated_at,
}


def _require_content(content: str | None) -> str:
    if not content or not content.strip():
        raise InvalidInput("Content required")
    return content


class NoteService:
    """Business logic for notes, always on behalf of a Caller."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, note_id) -> Note:
        nid = to_uuid(note_id)
        note = await self.db.get(Note, nid) if nid else None
        if not note:
            raise NotFound("Note not found")
        return note

    # ─── Create ──────────────────────────────────────────

    async def create_note(
        self,
        caller: Caller,
        content: str | None,
        owner_id: str | None = None,
    ) -> Note:
        """Create a note for the caller, or for owner_id when the caller is an admin.

        Learn: A non-admin's owner_id is ignored rather than rejected — the
        note always lands in their own account. The banned flag comes from
        the database, not the token, so a ban takes effect immediately.
        """
        content = _require_content(content)

        target = owner_id if (caller.is_admin and owner_id) else caller.user_id
        tid = to_uuid(target)
        owner = await self.db.get(User, tid) if tid else None
        if not owner:
            raise NotFound("Target user not found")

        acting = replace(caller, banned=owner.banned) if caller.owns(owner.id) else caller
        authorize(acting, Operation.CREATE, Resource.NOTE, owner_id=owner.id)

        note = Note(
            owner_id=owner.id,
            author_id=uuid.UUID(caller.user_id),
            content=content,
        )
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)

        logger.info(
            "note.created",
            note_id=str(note.id),
            owner_id=str(note.owner_id),
            author_id=str(note.author_id),
        )
        return note

    # ─── Read ────────────────────────────────────────────

    async def get_note(self, caller: Caller, note_id) -> Note:
        note = await self._load(note_id)
        authorize(caller, Operation.READ, Resource.NOTE, owner_id=note.owner_id)
        return note

    async def list_notes(self, caller: Caller, filters: NoteFilters) -> Page[Note]:
        """List one page of notes for a single owner.

        Learn: Conditions are applied conditionally — only when the caller
        provides them — but the owner condition is unconditional.
        total counts every match, independent of the page requested.
        """
        owner = filters.owner_id or caller.user_id
        owner_uuid = to_uuid(owner)
        authorize(caller, Operation.LIST, Resource.NOTE, owner_id=owner_uuid or owner)

        paging = filters.paging
        if owner_uuid is None:
            return Page(items=[], page=paging.page, page_size=paging.page_size, total=0)

        conditions = [Note.owner_id == owner_uuid]
        if filters.text:
            conditions.append(Note.content.ilike(like_pattern(filters.text), escape="\\"))
        if filters.created:
            conditions.extend(filters.created.conditions(Note.created_at))
        if filters.updated:
            conditions.extend(filters.updated.conditions(Note.updated_at))

        total = await self.db.scalar(
            select(func.count()).select_from(Note).where(*conditions)
        )

        column = _SORT_COLUMNS[filters.sort.field]
        ordering = column.asc() if filters.sort.order is SortOrder.ASC else column.desc()
        result = await self.db.execute(
            select(Note)
            .where(*conditions)
            .order_by(ordering, Note.id)
            .offset(paging.offset)
            .limit(paging.page_size)
        )
        return Page(
            items=list(result.scalars().all()),
            page=paging.page,
            page_size=paging.page_size,
            total=total or 0,
        )

    # ─── Update ──────────────────────────────────────────

    async def update_note(self, caller: Caller, note_id, content: str | None) -> Note:
        content = _require_content(content)
        note = await self._load(note_id)
        authorize(caller, Operation.UPDATE, Resource.NOTE, owner_id=note.owner_id)

        note.content = content
        note.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(note)

        logger.info("note.updated", note_id=str(note.id), by=caller.user_id)
        return note

    # ─── Delete ──────────────────────────────────────────

    async def delete_note(self, caller: Caller, note_id) -> None:
        note = await self._load(note_id)
        authorize(caller, Operation.DELETE, Resource.NOTE, owner_id=note.owner_id)

        await self.db.delete(note)
        await self.db.commit()

        logger.info("note.deleted", note_id=str(note.id), by=caller.user_id)
