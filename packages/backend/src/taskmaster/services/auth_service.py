"""Auth service — registration and the login gate.

Learn: Login is the only place tokens are issued:
1. Validate input shape (blank fields, email syntax) → ValidationError
2. Look up the user by email                         → InvalidCredentialsError if absent
3. Check the password against the bcrypt hash        → InvalidCredentialsError if wrong
4. Issue a JWT carrying email (sub) and user id (userId)

Steps 2 and 3 fail with the *same* error and message, so a client
can't use the login endpoint to discover which emails are registered.
Nothing is written during login — no lockout counters, no sessions.

Registration checks exists_by_email first for a friendly error, but the
real guarantee is the UNIQUE constraint on users.email: the repository
turns a losing concurrent INSERT into EmailAlreadyExistsError.
"""

import re
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.jwt import CredentialCodec
from taskmaster.auth.password import PasswordHasher
from taskmaster.db.models import User
from taskmaster.db.repositories import UserRepository
from taskmaster.errors import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    ValidationError,
)

logger = structlog.get_logger()

# Syntax only — no deliverability check
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})$")

NAME_MIN, NAME_MAX = 2, 100
EMAIL_MAX = 150
PASSWORD_MIN, PASSWORD_MAX = 6, 100


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_email(email: str | None) -> None:
    if _is_blank(email):
        raise ValidationError("Email cannot be null or empty", field="email")
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Email format is invalid", field="email")


class AuthService:
    """Registration and credential checks."""

    def __init__(self, db: AsyncSession, codec: CredentialCodec, hasher: PasswordHasher):
        self.db = db
        self.users = UserRepository(db)
        self.codec = codec
        self.hasher = hasher

    # ─── Login ───────────────────────────────────────────

    async def login(self, email: str, password: str) -> LoginResult:
        """Check email/password and issue a token."""
        validate_email(email)
        if _is_blank(password):
            raise ValidationError("Password cannot be null or empty", field="password")

        user = await self.users.find_by_email(email)
        if user is None:
            logger.info("auth.login_failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not self.hasher.verify(password, user.password_hash):
            logger.info("auth.login_failed", reason="bad_password", user_id=user.id)
            raise InvalidCredentialsError()

        token = self.codec.issue(user.email, user.id)
        logger.info("auth.login_succeeded", user_id=user.id)
        return LoginResult(token=token, user=user)

    # ─── Register ────────────────────────────────────────

    async def register(self, name: str, email: str, password: str) -> User:
        """Create a new user with a bcrypt-hashed password."""
        self._validate_registration(name, email, password)

        if await self.users.exists_by_email(email):
            raise EmailAlreadyExistsError(email)

        user = User(
            name=name,
            email=email,
            password_hash=self.hasher.hash(password),
        )
        await self.users.save(user)
        await self.db.commit()

        logger.info("auth.user_registered", user_id=user.id)
        return user

    async def register_and_login(self, name: str, email: str, password: str) -> LoginResult:
        """Register, then log straight in with the same credentials."""
        await self.register(name, email, password)
        return await self.login(email, password)

    @staticmethod
    def _validate_registration(name: str, email: str, password: str) -> None:
        if _is_blank(name):
            raise ValidationError("Name cannot be null or empty", field="name")
        if not NAME_MIN <= len(name) <= NAME_MAX:
            raise ValidationError(
                f"Name must be between {NAME_MIN} and {NAME_MAX} characters",
                field="name",
            )
        validate_email(email)
        if len(email) > EMAIL_MAX:
            raise ValidationError(
                f"Email must not exceed {EMAIL_MAX} characters", field="email"
            )
        if _is_blank(password):
            raise ValidationError("Password cannot be null or empty", field="password")
        if not PASSWORD_MIN <= len(password) <= PASSWORD_MAX:
            raise ValidationError(
                f"Password must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters",
                field="password",
            )
