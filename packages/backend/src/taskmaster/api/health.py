"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
database answers. Public — the auth middleware never looks at it.
"""

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from taskmaster import __version__

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health.database_unavailable", error=str(e))
        checks["database"] = f"error: {e}"

    status = "ok" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
