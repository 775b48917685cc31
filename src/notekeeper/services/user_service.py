"""User directory service — admin listing and moderation.

Learn: Admin accounts never appear in the directory. The role != admin
condition is always part of the query; an explicit role filter can only
narrow it further, so asking for role=admin simply matches nothing.
"""

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.policy import Caller, Operation, Resource, authorize
from notekeeper.db.models import Role, User, to_uuid, utcnow
from notekeeper.errors import NotFound
from notekeeper.services.filters import Page, SortField, SortOrder, UserFilters, like_pattern

logger = structlog.get_logger()

_SORT_COLUMNS = {
    SortField.CREATED_AT: User.created_at,
    SortField.UPDATED_AT: User.updated_at,
}


class UserService:
    """Business logic for the admin user-management surface."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self, caller: Caller, filters: UserFilters) -> Page[User]:
        authorize(caller, Operation.LIST, Resource.USER_ACCOUNT)

        conditions = [User.role != Role.ADMIN.value]
        if filters.role:
            conditions.append(User.role == filters.role)
        if filters.text:
            pattern = like_pattern(filters.text)
            conditions.append(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                )
            )
        if filters.banned is not None:
            conditions.append(User.banned == filters.banned)
        if filters.created:
            conditions.extend(filters.created.conditions(User.created_at))
        if filters.updated:
            conditions.extend(filters.updated.conditions(User.updated_at))

        total = await self.db.scalar(
            select(func.count()).select_from(User).where(*conditions)
        )

        paging = filters.paging
        column = _SORT_COLUMNS[filters.sort.field]
        ordering = column.asc() if filters.sort.order is SortOrder.ASC else column.desc()
        result = await self.db.execute(
            select(User)
            .where(*conditions)
            .order_by(ordering, User.id)
            .offset(paging.offset)
            .limit(paging.page_size)
        )
        return Page(
            items=list(result.scalars().all()),
            page=paging.page,
            page_size=paging.page_size,
            total=total or 0,
        )

    async def set_banned(self, caller: Caller, target_id, banned: bool) -> User:
        """Ban or unban a non-admin account. Idempotent."""
        uid = to_uuid(target_id)
        target = await self.db.get(User, uid) if uid else None
        if not target:
            raise NotFound("User not found")

        authorize(
            caller,
            Operation.BAN if banned else Operation.UNBAN,
            Resource.USER_ACCOUNT,
            owner_id=target.id,
            target_role=target.role,
        )

        if target.banned != banned:
            target.banned = banned
            target.updated_at = utcnow()
            await self.db.commit()

        logger.info(
            "account.banned" if banned else "account.unbanned",
            user_id=str(target.id),
            by=caller.user_id,
        )
        return target
