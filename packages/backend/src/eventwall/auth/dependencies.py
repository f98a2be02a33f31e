"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract and
validate the current user from the request's Bearer token. The websocket
endpoint uses identity_from_token() directly, since browsers can't set
headers on a websocket handshake.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from eventwall.auth.jwt import TokenError, verify_token


@dataclass
class CurrentIdentity:
    """The authenticated guest making the request."""
    user_id: str
    display_name: str
    email: Optional[str] = None


def identity_from_token(token: str) -> CurrentIdentity:
    """Decode a token into an identity. Raises TokenError."""
    payload = verify_token(token)
    return CurrentIdentity(
        user_id=str(payload["sub"]),
        display_name=payload["name"],
        email=payload.get("email"),
    )


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no auth)."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        return identity_from_token(authorization[7:])
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth)."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
