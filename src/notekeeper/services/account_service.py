"""Account service — the credential store.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.
Registration and login live here; issuing the session cookie is an HTTP
concern and stays in api/auth.py.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.auth.password import hash_password, verify_password
from notekeeper.config import Settings
from notekeeper.db.models import Role, User, to_uuid
from notekeeper.errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthenticated

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    """Registration, login and account lookup."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def get_user(self, user_id) -> User:
        """Load an account by id; NotFound for unknown or malformed ids."""
        uid = to_uuid(user_id)
        user = await self.db.get(User, uid) if uid else None
        if not user:
            raise NotFound("User not found")
        return user

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str | None = None,
    ) -> User:
        """Create an account.

        Learn: Only "admin" maps to the admin role; anything else (or nothing)
        becomes a regular user. Self-registering as admin is a demo feature
        and can be switched off with NOTEKEEPER_ALLOW_ADMIN_SIGNUP=false.
        """
        name = name.strip()
        email = normalize_email(email)
        if not name or not email or not password:
            raise InvalidInput("Name, email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        wants_admin = role == Role.ADMIN.value
        if wants_admin and not self.settings.allow_admin_signup:
            raise Forbidden("Admin signup is disabled")

        if await self.find_by_email(email):
            raise Conflict("Email already in use")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
            role=Role.ADMIN.value if wants_admin else Role.USER.value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent signup claimed the email between the check and the insert
            await self.db.rollback()
            raise Conflict("Email already in use")
        await self.db.refresh(user)

        logger.info("account.registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check email + password. Same 401 for unknown email and wrong password."""
        if not email or not password:
            raise InvalidInput("Email and password required")

        user = await self.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("account.login_failed", known_email=user is not None)
            raise Unauthenticated("Invalid credentials")

        logger.info("account.login", user_id=str(user.id))
        return user
