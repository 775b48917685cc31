"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.

Key concepts:
- UUID primary keys via the generic Uuid type (native on Postgres, CHAR(32)
  on SQLite, which the test suite uses)
- Timestamps are set by the application (utcnow), not the server, so
  updated_at has microsecond resolution on every backend
- Emails are stored trimmed and lower-cased; uniqueness is case-insensitive
  because of that normalisation
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def to_uuid(value) -> uuid.UUID | None:
    """Parse an id from a path or token; None if it is not a UUID."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """A registered account (user or admin).

    Learn: role is fixed at signup — there is no promotion endpoint.
    banned is only ever flipped by an admin acting on a non-admin account.
    Accounts are never hard-deleted.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Role.USER.value
    )
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class Note(Base):
    """A text note.

    Learn: owner is who the note belongs to; author is who wrote it.
    They differ only when an admin creates a note on behalf of a user.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
