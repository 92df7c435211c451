"""Tests for the middleware stack — auth allow-list, security headers, request IDs.

Learn: The authentication middleware never rejects anything itself;
these tests check what it binds (or doesn't) and leave the 401s to the
route tests.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from starlette.middleware.base import BaseHTTPMiddleware

from conftest import TEST_JWT_SECRET, bearer
from taskmaster.auth.dependencies import CurrentIdentity, get_current_identity
from taskmaster.config import DEFAULT_PUBLIC_PATHS
from taskmaster.middleware.authentication import extract_bearer_token, is_public_path
from taskmaster.middleware.request_id import resolve_request_id


# ═══════════════════════════════════════════════════════════
# Allow-list + header parsing
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "path",
    [
        "/api/auth/login",
        "/api/auth/register",
        "/api/auth/status",
        "/api/health",
        "/docs",
        "/docs/oauth2-redirect",
        "/openapi.json",
        "/",
    ],
)
def test_public_paths(path):
    assert is_public_path(path, DEFAULT_PUBLIC_PATHS)


@pytest.mark.parametrize(
    "path",
    ["/api/auth/me", "/api/tasks", "/api/tasks/1", "/api/healthz", "/docsx"],
)
def test_protected_paths(path):
    assert not is_public_path(path, DEFAULT_PUBLIC_PATHS)


def test_trailing_slash_entry_is_prefix():
    assert is_public_path("/static/app.js", ["/static/"])
    assert not is_public_path("/static", ["/static/"])


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("Bearer   abc  ", "abc"),
        ("Basic dXNlcjpwYXNz", None),
        ("bearer abc", None),
        ("Bearer ", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


# ═══════════════════════════════════════════════════════════
# Authentication middleware through the app
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_expired_token_is_unauthenticated(client, alice):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": "alice@example.com",
            "userId": alice["user_id"],
            "iat": int((now - timedelta(hours=2)).timestamp()),
            "exp": int((now - timedelta(hours=1)).timestamp()),
        },
        TEST_JWT_SECRET,
        algorithm="HS256",
    )
    r = await client.get("/api/tasks", headers=bearer(token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_secret(client, alice):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": "alice@example.com",
            "userId": alice["user_id"],
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        },
        "a-completely-different-secret-of-32-bytes",
        algorithm="HS256",
    )
    r = await client.get("/api/tasks", headers=bearer(token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_without_user_id_is_unauthenticated(client, alice):
    """Valid signature but no userId claim: identity is not bound."""
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": "alice@example.com",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        },
        TEST_JWT_SECRET,
        algorithm="HS256",
    )
    r = await client.get("/api/tasks", headers=bearer(token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_non_bearer_scheme_is_unauthenticated(client, alice):
    r = await client.get(
        "/api/tasks",
        headers={"Authorization": f"Token {alice['token']}"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_identity_already_bound_is_kept(app):
    """An identity set earlier in the request is never replaced by the token's."""
    preset = CurrentIdentity(user_id=42, email="preset@example.com")

    class PresetIdentity(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            request.state.identity = preset
            return await call_next(request)

    @app.get("/whoami-check")
    async def whoami_check(identity: CurrentIdentity = Depends(get_current_identity)):
        return {"user_id": identity.user_id, "email": identity.email}

    # Registered last, so it runs before the authentication middleware
    app.add_middleware(PresetIdentity)

    token = app.state.codec.issue("alice@example.com", 1)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/whoami-check", headers=bearer(token))

    assert r.status_code == 200
    assert r.json() == {"user_id": 42, "email": "preset@example.com"}


@pytest.mark.asyncio
async def test_valid_token_binds_identity(app):
    @app.get("/whoami-check")
    async def whoami_check(identity: CurrentIdentity = Depends(get_current_identity)):
        return {"user_id": identity.user_id, "email": identity.email}

    token = app.state.codec.issue("alice@example.com", 1)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/whoami-check", headers=bearer(token))

    assert r.json() == {"user_id": 1, "email": "alice@example.com"}


# ═══════════════════════════════════════════════════════════
# Security headers + request IDs
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_security_headers_on_errors(client):
    """Error responses from handlers get the headers too."""
    r = await client.get("/api/tasks")
    assert r.status_code == 401
    assert r.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


def test_unsafe_request_id_replaced():
    assert resolve_request_id("abc def\n") != "abc def\n"
    assert resolve_request_id("x" * 200) != "x" * 200
    assert resolve_request_id(None)


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers
