"""Pydantic schemas for signup, login and the current user.

Learn: Pydantic v2 models validate request/response data. Separate
request schemas (input) from read schemas (output). No read schema has a
password_hash field, so a hash cannot leak through a response.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=r"^\s*[^@\s]+@[^@\s]+\s*$")
    password: str = Field(..., min_length=6)
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class UserRead(UserSummary):
    """Full account view (sans password) for /auth/me and the admin listing."""
    banned: bool
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    message: str
    user: UserSummary


class MeResponse(BaseModel):
    message: str
    user: UserRead


class MessageResponse(BaseModel):
    message: str
