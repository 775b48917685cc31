"""Pydantic schemas for notes."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)
    user_id: Optional[str] = Field(
        None, alias="userId", description="Target owner (admins only)"
    )

    model_config = {"populate_by_name": True}


class NoteUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class NoteRead(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    author_id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteEnvelope(BaseModel):
    note: NoteRead


class NoteList(BaseModel):
    notes: list[NoteRead]
    page: int
    limit: int
    total: int
