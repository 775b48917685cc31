"""Admin API — user directory and moderation.

Learn: The whole router sits behind require_admin (see api/__init__.py),
so non-admins get 403 before any query runs. Admins manage accounts here,
not content: there is deliberately no route for reading a user's notes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.dependencies import require_admin
from notekeeper.auth.policy import Caller
from notekeeper.db.engine import get_db
from notekeeper.schemas.admin import UserList
from notekeeper.schemas.auth import MessageResponse, UserRead
from notekeeper.services.filters import UserFilters
from notekeeper.services.user_service import UserService

router = APIRouter(prefix="/admin")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/users", response_model=UserList)
async def list_users(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, description="Page size, 1-100 (default 20)"),
    q: Optional[str] = Query(None, description="Matches name or email"),
    role: Optional[str] = Query(None),
    banned: Optional[bool] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    created_from: Optional[str] = Query(None, alias="createdFrom"),
    created_to: Optional[str] = Query(None, alias="createdTo"),
    updated_from: Optional[str] = Query(None, alias="updatedFrom"),
    updated_to: Optional[str] = Query(None, alias="updatedTo"),
    caller: Caller = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    """List non-admin accounts with filters."""
    filters = UserFilters.from_query(
        q=q,
        role=role,
        banned=banned,
        created_from=created_from,
        created_to=created_to,
        updated_from=updated_from,
        updated_to=updated_to,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    result = await svc.list_users(caller, filters)
    return UserList(
        users=[UserRead.model_validate(u) for u in result.items],
        page=result.page,
        limit=result.page_size,
        total=result.total,
    )


@router.post("/users/{user_id}/ban", response_model=MessageResponse)
async def ban_user(
    user_id: str,
    caller: Caller = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    await svc.set_banned(caller, user_id, banned=True)
    return MessageResponse(message="User banned")


@router.post("/users/{user_id}/unban", response_model=MessageResponse)
async def unban_user(
    user_id: str,
    caller: Caller = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    await svc.set_banned(caller, user_id, banned=False)
    return MessageResponse(message="User unbanned")
