"""Bearer-token authentication middleware.

Learn: Runs on every request before routing. It turns
`Authorization: Bearer <jwt>` into a CurrentIdentity on
request.state.identity, and binds user_id into structlog's context so
every log line for the request says who made it.

It never rejects a request. The outcomes are:
- public path           → skipped entirely
- no / non-Bearer header → continue unauthenticated
- bad or expired token  → log, continue unauthenticated
- good token            → bind identity, continue

Rejection happens later, in get_current_identity (401) or in the
ownership check (404). That keeps login/register reachable even when a
client sends a stale or garbage Authorization header.
"""

from collections.abc import Iterable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from taskmaster.auth.dependencies import CurrentIdentity
from taskmaster.auth.jwt import CredentialCodec
from taskmaster.errors import InvalidCredentialError

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


def is_public_path(path: str, public_paths: Iterable[str]) -> bool:
    """Check if a path is on the allow-list."""
    for entry in public_paths:
        if entry == "/":
            if path == "/":
                return True
        elif entry.endswith("/"):
            if path.startswith(entry):
                return True
        elif path == entry or path.startswith(entry + "/"):
            return True
    return False


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token part of an `Authorization: Bearer <token>` header, if any."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Resolve the caller's identity from a bearer token."""

    def __init__(self, app, codec: CredentialCodec, public_paths: Iterable[str]):
        super().__init__(app)
        self.codec = codec
        self.public_paths = tuple(public_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        if is_public_path(request.url.path, self.public_paths):
            return await call_next(request)

        # Already resolved for this request — nothing to do
        if getattr(request.state, "identity", None) is None:
            identity = self._resolve(request)
            if identity is not None:
                request.state.identity = identity
                structlog.contextvars.bind_contextvars(user_id=identity.user_id)

        return await call_next(request)

    def _resolve(self, request: Request) -> CurrentIdentity | None:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return None

        try:
            claims = self.codec.verify_and_decode(token)
        except InvalidCredentialError as e:
            logger.warning(
                "auth.token_rejected",
                path=request.url.path,
                reason=e.message,
            )
            return None

        if claims.user_id is None:
            logger.warning(
                "auth.token_missing_user_id",
                path=request.url.path,
                subject=claims.subject_email,
            )
            return None

        logger.debug("auth.identity_resolved", subject=claims.subject_email)
        return CurrentIdentity(user_id=claims.user_id, email=claims.subject_email)
