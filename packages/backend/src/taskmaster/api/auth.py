"""Auth API — registration, login, current user.

Learn: Routes for the authentication gate:
- POST /auth/register → create an account and log straight in (201)
- POST /auth/login → email/password → JWT
- GET /auth/status → liveness text
- GET /auth/me → the caller's user record (needs a bearer token)

All checks live in AuthService; failures surface as typed errors and
api/errors.py turns them into JSON.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.dependencies import CurrentIdentity, get_current_identity
from taskmaster.db.engine import get_db
from taskmaster.db.repositories import UserRepository
from taskmaster.errors import AuthenticationRequiredError
from taskmaster.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserRead
from taskmaster.services.auth_service import AuthService, LoginResult

router = APIRouter(prefix="/auth")


def _auth_svc(request: Request, db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db, request.app.state.codec, request.app.state.hasher)


def _login_response(result: LoginResult) -> LoginResponse:
    return LoginResponse(
        token=result.token,
        user_id=result.user.id,
        name=result.user.name,
        email=result.user.email,
        user_created_at=result.user.created_at,
    )


@router.post("/register", response_model=LoginResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_auth_svc)):
    """Create a new account and return a token for it."""
    result = await svc.register_and_login(body.name, body.email, body.password)
    return _login_response(result)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_auth_svc)):
    """Authenticate with email + password, get a JWT."""
    result = await svc.login(body.email, body.password)
    return _login_response(result)


@router.get("/status", response_class=PlainTextResponse)
async def auth_status():
    return "Auth service is running"


@router.get("/me", response_model=UserRead)
async def me(
    identity: CurrentIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    user = await UserRepository(db).find_by_id(identity.user_id)
    if user is None:
        # Token is valid but the account is gone
        raise AuthenticationRequiredError()
    return user
