"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to get the identity
that AuthenticationMiddleware resolved for this request. They never look
at the Authorization header themselves — by the time a handler runs,
the middleware has already decided who (if anyone) is calling.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from taskmaster.errors import AuthenticationRequiredError


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated caller, as read from a verified token.

    Learn: This is the unified auth context. Everything downstream
    scopes by user_id.
    """

    user_id: int
    email: str


def get_current_identity_optional(request: Request) -> Optional[CurrentIdentity]:
    """Identity bound to this request, or None (soft auth)."""
    return getattr(request.state, "identity", None)


def get_current_identity(request: Request) -> CurrentIdentity:
    """Identity bound to this request (hard auth — 401 if missing)."""
    identity = get_current_identity_optional(request)
    if identity is None:
        raise AuthenticationRequiredError()
    return identity
