"""Auth API — signup, login, logout, current user.

Learn: Routes for the session lifecycle:
- POST /auth/signup → create an account, set the session cookie
- POST /auth/login → email/password → session cookie
- POST /auth/logout → clear the session cookie
- GET /auth/me → current user info

The token never appears in a response body. It only travels as an
HTTP-only, SameSite=Lax cookie, Secure in production.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.dependencies import get_current_user, get_settings
from notekeeper.auth.jwt import issue_session_token
from notekeeper.auth.policy import Caller
from notekeeper.config import Settings
from notekeeper.db.engine import get_db
from notekeeper.db.models import User
from notekeeper.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    SignupRequest,
    UserRead,
    UserSummary,
)
from notekeeper.services.account_service import AccountService

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, settings)


def _set_session_cookie(response: Response, user: User, settings: Settings) -> None:
    token = issue_session_token(str(user.id), user.role, settings)
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


# ─── Signup ──────────────────────────────────────────────


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    svc: AccountService = Depends(_svc),
):
    """Create a new account and start a session."""
    user = await svc.register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    _set_session_cookie(response, user, svc.settings)
    return AuthResponse(message="Signup successful", user=UserSummary.model_validate(user))


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    svc: AccountService = Depends(_svc),
):
    """Login with email and password → session cookie."""
    user = await svc.authenticate(body.email, body.password)
    _set_session_cookie(response, user, svc.settings)
    return AuthResponse(message="Login successful", user=UserSummary.model_validate(user))


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Clear the session cookie.

    Learn: This only tells the browser to forget the cookie. The token
    itself stays valid until it expires — sessions are stateless.
    """
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return MessageResponse(message="Logged out")


# ─── Current user ────────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(
    caller: Caller = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    """Get the current authenticated user's info."""
    user = await svc.get_user(caller.user_id)
    return MeResponse(message="User fetched", user=UserRead.model_validate(user))
