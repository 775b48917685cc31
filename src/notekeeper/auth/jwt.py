"""Session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A session token lives for a fixed window (7 days by default) and is never
refreshed. It carries the user id and role so most requests can be
authorized without a database round-trip.

Logging out only deletes the cookie on the client; a copied token stays
valid until it expires. There is no server-side deny-list.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from notekeeper.config import Settings
from notekeeper.errors import Internal


class TokenError(Exception):
    """Raised when token verification fails."""


@dataclass(frozen=True)
class SessionClaims:
    """The verified contents of a session token."""

    user_id: str
    role: str
    issued_at: datetime
    expires_at: datetime


def issue_session_token(user_id: str, role: str, settings: Settings) -> str:
    """Create a signed session token for a verified identity."""
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(days=settings.session_expire_days),
    }
    try:
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    except (jwt.PyJWTError, NotImplementedError) as e:
        raise Internal(f"Could not sign session token: {e}")


def verify_session_token(token: str, settings: Settings) -> SessionClaims:
    """Verify signature and expiry, and decode a session token.

    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "role", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    return SessionClaims(
        user_id=payload["sub"],
        role=payload["role"],
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
