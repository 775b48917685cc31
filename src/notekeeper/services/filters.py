"""Typed filter specifications for scoped list queries.

Learn: Raw query-string values never reach SQL directly. They are parsed
here into small frozen dataclasses with a fixed set of fields: sort fields
come from an allow-list, page sizes are clamped, dates are parsed and
normalised. The services only ever consume these objects, so there is no
way to smuggle an arbitrary column into a filter or an ORDER BY.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Generic, Optional, Sequence, TypeVar

from sqlalchemy import ColumnElement

from notekeeper.errors import InvalidInput

T = TypeVar("T")

MAX_PAGE_SIZE = 100
MAX_PAGE = 1_000_000  # keeps OFFSET within a 64-bit integer on every backend
DEFAULT_NOTES_PAGE_SIZE = 10
DEFAULT_USERS_PAGE_SIZE = 20


class SortField(str, enum.Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


# ─── Dates ───────────────────────────────────────────────


def parse_timestamp(value: str, name: str) -> datetime:
    """Parse an ISO date or datetime into an aware UTC datetime.

    A bare date means midnight UTC. Naive datetimes are taken as UTC.
    """
    raw = value.strip()
    try:
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), time.min, tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInput(f"Invalid date for {name}: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


@dataclass(frozen=True)
class DateRange:
    """Inclusive timestamp window. Either bound may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def parse(
        cls, start: Optional[str], end: Optional[str], name: str
    ) -> Optional["DateRange"]:
        """Build a range from query values; None when both are empty.

        The end bound is pushed to the last millisecond of its day, so
        from=2024-01-01&to=2024-01-01 covers that whole day.
        """
        if not start and not end:
            return None
        return cls(
            start=parse_timestamp(start, f"{name}From") if start else None,
            end=end_of_day(parse_timestamp(end, f"{name}To")) if end else None,
        )

    def conditions(self, column) -> list[ColumnElement[bool]]:
        clauses = []
        if self.start is not None:
            clauses.append(column >= self.start)
        if self.end is not None:
            clauses.append(column <= self.end)
        return clauses


# ─── Sorting and paging ──────────────────────────────────


@dataclass(frozen=True)
class Sort:
    field: SortField = SortField.CREATED_AT
    order: SortOrder = SortOrder.DESC

    @classmethod
    def parse(cls, sort_by: Optional[str], order: Optional[str]) -> "Sort":
        """Allow-listed sort. An unknown field falls back to createdAt desc."""
        try:
            sort_field = SortField(sort_by or SortField.CREATED_AT.value)
        except ValueError:
            return cls()
        sort_order = SortOrder.ASC if order == SortOrder.ASC.value else SortOrder.DESC
        return cls(field=sort_field, order=sort_order)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_NOTES_PAGE_SIZE

    @classmethod
    def parse(cls, page: Optional[int], limit: Optional[int], default_size: int) -> "PageRequest":
        """Clamp page to [1, MAX_PAGE] and page size to [1, MAX_PAGE_SIZE].

        A page past the last match is not an error, just an empty page.
        """
        return cls(
            page=max(1, min(MAX_PAGE, page or 1)),
            page_size=max(1, min(MAX_PAGE_SIZE, limit or default_size)),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class Page(Generic[T]):
    """One page of results plus the full matching count."""

    items: Sequence[T]
    page: int
    page_size: int
    total: int


# ─── Filter specs ────────────────────────────────────────


def like_pattern(text: str) -> str:
    """Literal, case-insensitive substring pattern for ILIKE (escape char '\\')."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class NoteFilters:
    """What a caller asked for when listing notes.

    owner_id None means "the caller's own notes".
    """

    owner_id: Optional[str] = None
    text: Optional[str] = None
    created: Optional[DateRange] = None
    updated: Optional[DateRange] = None
    sort: Sort = field(default_factory=Sort)
    paging: PageRequest = field(default_factory=PageRequest)

    @classmethod
    def from_query(
        cls,
        owner_id: Optional[str] = None,
        q: Optional[str] = None,
        created_from: Optional[str] = None,
        created_to: Optional[str] = None,
        updated_from: Optional[str] = None,
        updated_to: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> "NoteFilters":
        return cls(
            owner_id=owner_id or None,
            text=q or None,
            created=DateRange.parse(created_from, created_to, "created"),
            updated=DateRange.parse(updated_from, updated_to, "updated"),
            sort=Sort.parse(sort_by, order),
            paging=PageRequest.parse(page, limit, DEFAULT_NOTES_PAGE_SIZE),
        )


@dataclass(frozen=True)
class UserFilters:
    """What an admin asked for when listing accounts."""

    text: Optional[str] = None
    role: Optional[str] = None
    banned: Optional[bool] = None
    created: Optional[DateRange] = None
    updated: Optional[DateRange] = None
    sort: Sort = field(default_factory=Sort)
    paging: PageRequest = field(
        default_factory=lambda: PageRequest(page_size=DEFAULT_USERS_PAGE_SIZE)
    )

    @classmethod
    def from_query(
        cls,
        q: Optional[str] = None,
        role: Optional[str] = None,
        banned: Optional[bool] = None,
        created_from: Optional[str] = None,
        created_to: Optional[str] = None,
        updated_from: Optional[str] = None,
        updated_to: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> "UserFilters":
        return cls(
            text=q or None,
            role=role or None,
            banned=banned,
            created=DateRange.parse(created_from, created_to, "created"),
            updated=DateRange.parse(updated_from, updated_to, "updated"),
            sort=Sort.parse(sort_by, order),
            paging=PageRequest.parse(page, limit, DEFAULT_USERS_PAGE_SIZE),
        )
