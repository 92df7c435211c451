"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries everything needed to authenticate a request:
- sub:    the user's email
- userId: the user's numeric id (used for ownership checks)
- iat / exp: issue and expiry times (Unix seconds)

Tokens are signed (HS256), not encrypted — the claims aren't secret, we
only need tamper-evidence and expiry. Any server instance holding the
same secret can verify any token, so there's no session store.

There is no refresh token and no revocation list: a token is valid until
it expires.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt

from taskmaster.config import Settings
from taskmaster.errors import InvalidCredentialError

USER_ID_CLAIM = "userId"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CredentialClaims:
    """Decoded, verified token contents."""

    subject_email: str
    user_id: Optional[int]
    issued_at: datetime
    expires_at: datetime


class CredentialCodec:
    """Issues and verifies signed bearer tokens.

    Pure apart from reading the clock. The clock is injectable so expiry
    can be tested without sleeping.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_ms: int = 86_400_000,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("JWT secret cannot be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(milliseconds=ttl_ms)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "CredentialCodec":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl_ms=settings.jwt_expiration_ms,
            **kwargs,
        )

    def issue(
        self,
        subject_email: str,
        user_id: int,
        extra_claims: Optional[dict[str, Any]] = None,
    ) -> str:
        """Create a signed token for this identity."""
        now = self._clock()
        payload = dict(extra_claims or {})
        payload.update(
            {
                "sub": subject_email,
                USER_ID_CLAIM: user_id,
                "iat": int(now.timestamp()),
                "exp": int((now + self._ttl).timestamp()),
            }
        )
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_and_decode(self, token: str) -> CredentialClaims:
        """Verify a token's signature and expiry, then return its claims.

        Raises InvalidCredentialError on any failure.
        """
        try:
            # Signature is checked here, before any claim is looked at.
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "exp", "iat"],
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidCredentialError(f"Invalid token: {e}") from e

        try:
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            user_id = _coerce_user_id(payload.get(USER_ID_CLAIM))
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidCredentialError(f"Malformed token payload: {e}") from e

        if expires_at <= self._clock():
            raise InvalidCredentialError("Token has expired")

        return CredentialClaims(
            subject_email=payload["sub"],
            user_id=user_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def extract_user_id(self, token: str) -> Optional[int]:
        """Return the userId claim, or None for tokens issued without one."""
        return self.verify_and_decode(token).user_id


def _coerce_user_id(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("userId must be an integer")
    return int(value)
