"""Pydantic schemas for the admin user directory."""

from pydantic import BaseModel

from notekeeper.schemas.auth import UserRead


class UserList(BaseModel):
    users: list[UserRead]
    page: int
    limit: int
    total: int
