"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current caller from the request. Together they form the
first two stages of every protected request:

    get_current_user (authenticate) → require_admin (authorize) → service

Only the session cookie is trusted. An Authorization header is ignored
even when it holds a perfectly valid token, so a token leaked through a
non-browser client cannot be replayed as a bearer credential.
"""

from typing import Optional

from fastapi import Depends, Request

from notekeeper.auth.jwt import TokenError, verify_session_token
from notekeeper.auth.policy import Caller
from notekeeper.config import Settings
from notekeeper.errors import Forbidden, Unauthenticated


def get_settings(request: Request) -> Settings:
    """The Settings object the app was built with."""
    return request.app.state.settings


async def get_current_user_optional(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[Caller]:
    """Resolve the caller from the session cookie (None if no cookie).

    A cookie that is present but invalid still fails with 401.
    """
    token = request.cookies.get(settings.cookie_name)
    if not token:
        return None

    try:
        claims = verify_session_token(token, settings)
    except TokenError as e:
        raise Unauthenticated(str(e))
    return Caller(user_id=claims.user_id, role=claims.role)


async def get_current_user(
    caller: Optional[Caller] = Depends(get_current_user_optional),
) -> Caller:
    """Resolve the caller (required — 401 if no session cookie)."""
    if caller is None:
        raise Unauthenticated("No token provided")
    return caller


async def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    """Gate for the user-management surface."""
    if not caller.is_admin:
        raise Forbidden()
    return caller
