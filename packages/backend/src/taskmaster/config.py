"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TASKMASTER_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Settings are frozen once built. The app factory receives a Settings
instance and hands the relevant pieces (signing secret, token TTL,
bcrypt cost) to the components that need them, so nothing in the
auth core reads configuration from a global.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "change-me-in-production-0123456789abcdef"

# Entries ending in "/" match as prefixes; any other entry matches itself
# and its sub-paths. "/" on its own only matches the root.
DEFAULT_PUBLIC_PATHS = (
    "/api/auth/register",
    "/api/auth/login",
    "/api/auth/status",
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/",
    "/favicon.ico",
)


class Settings(BaseSettings):
    """All app configuration. Set via TASKMASTER_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskmaster.db"

    # Auth
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expiration_ms: int = 86_400_000  # 24h
    bcrypt_rounds: int = 12

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # CORS
    cors_origins: list[str] = ["*"]

    # Requests on these paths skip bearer-token resolution entirely
    public_paths: tuple[str, ...] = DEFAULT_PUBLIC_PATHS

    model_config = {"env_prefix": "TASKMASTER_", "frozen": True}

    @model_validator(mode="after")
    def validate_auth_settings(self):
        """HS256 needs a 256-bit key; production must not run on the dev secret."""
        if len(self.jwt_secret.encode("utf-8")) < 32:
            raise ValueError(
                "TASKMASTER_JWT_SECRET must be at least 32 bytes long"
            )
        if self.environment != "development" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError(
                "TASKMASTER_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        if self.jwt_expiration_ms < 0:
            raise ValueError("TASKMASTER_JWT_EXPIRATION_MS cannot be negative")
        return self
