"""Auth tests — token round trip, /auth/me, and the Bearer dependency."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from eventwall.auth.dependencies import identity_from_token
from eventwall.auth.jwt import TokenError, create_access_token, verify_token
from eventwall.config import settings


# ═══════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════


def test_token_carries_identity():
    token = create_access_token("42", "Alice", email="alice@example.com")
    identity = identity_from_token(token)
    assert identity.user_id == "42"
    assert identity.display_name == "Alice"
    assert identity.email == "alice@example.com"


def test_expired_token_rejected():
    token = create_access_token("42", "Alice", expires_minutes=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_wrong_secret_rejected():
    token = jwt.encode(
        {"sub": "42", "name": "Alice", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError):
        verify_token(token)


def test_token_without_display_name_rejected():
    token = jwt.encode(
        {"sub": "42", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError, match="display name"):
        verify_token(token)


def test_garbage_token_rejected():
    with pytest.raises(TokenError):
        verify_token("not.a.token")


# ═══════════════════════════════════════════════════════════
# /auth/me
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(unauthenticated_client, make_auth_header):
    r = await unauthenticated_client.get(
        "/api/v1/auth/me", headers=make_auth_header("7", "Bob", email="bob@example.com")
    )
    assert r.status_code == 200
    assert r.json() == {"userId": "7", "displayName": "Bob", "email": "bob@example.com"}


@pytest.mark.asyncio
async def test_me_without_token(unauthenticated_client):
    r = await unauthenticated_client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_with_invalid_token(unauthenticated_client):
    r = await unauthenticated_client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer nope"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_with_overridden_identity(client):
    r = await client.get("/api/v1/auth/me")
    assert r.json()["displayName"] == "Alice"
