"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects every task route without
modifying individual handlers. Health and auth routers are open;
/auth/me asks for the identity itself.
"""

from fastapi import APIRouter, Depends

from taskmaster.api.auth import router as auth_router
from taskmaster.api.health import router as health_router
from taskmaster.api.tasks import router as tasks_router
from taskmaster.auth.dependencies import get_current_identity

_auth = [Depends(get_current_identity)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid JWT
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
