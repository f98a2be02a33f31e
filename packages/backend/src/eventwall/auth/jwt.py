"""JWT access token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the user id ("sub") and display name ("name"), so handlers never
need a user lookup. create_access_token() is used by the login callback
and by the `eventwall token` CLI for local testing.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from eventwall.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    user_id: str,
    display_name: str,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "name": display_name,
        "type": "access",
        "exp": now + timedelta(
            minutes=expires_minutes or settings.access_token_expire_minutes
        ),
        "iat": now,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if not payload.get("sub") or not payload.get("name"):
        raise TokenError("Token is missing the user id or display name")
    return payload
