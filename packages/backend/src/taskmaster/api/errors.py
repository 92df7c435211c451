"""Exception handlers — every failure becomes the same JSON shape.

Learn: Services raise typed TaskmasterError subclasses; routes don't
catch them. The handlers registered here turn them into:

    {
        "message": "Task with ID 7 not found",
        "error_code": "TASK_NOT_FOUND",
        "status": 404,
        "timestamp": "2026-01-01T12:00:00+00:00",
        "path": "/api/tasks/7"
    }

Request-body validation failures use the same shape with status 400
and a `validation_errors` list. Anything unexpected is logged with its
stack and reported as a bare 500 — never a traceback.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskmaster.errors import TaskmasterError

logger = structlog.get_logger()


def error_body(
    request: Request,
    message: str,
    error_code: str,
    status_code: int,
    validation_errors: Optional[list[dict[str, Any]]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "message": message,
        "error_code": error_code,
        "status": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }
    if validation_errors is not None:
        body["validation_errors"] = validation_errors
    return body


def _error_response(
    request: Request,
    message: str,
    error_code: str,
    status_code: int,
    validation_errors: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            error_body(request, message, error_code, status_code, validation_errors)
        ),
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application."""

    @app.exception_handler(TaskmasterError)
    async def taskmaster_error_handler(request: Request, exc: TaskmasterError):
        logger.warning(
            "api.request_failed",
            error_code=exc.error_code,
            status=exc.status_code,
            detail=exc.message,
        )
        validation_errors = None
        if getattr(exc, "field", None):
            validation_errors = [
                {"field": exc.field, "message": exc.message, "rejected_value": None}
            ]
        return _error_response(
            request,
            exc.message,
            exc.error_code,
            exc.status_code,
            validation_errors,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part != "body"),
                "message": err["msg"],
                "rejected_value": err.get("input"),
            }
            for err in exc.errors()
        ]
        logger.warning("api.validation_failed", errors=len(errors))
        return _error_response(
            request,
            "Validation failed",
            "VALIDATION_ERROR",
            status.HTTP_400_BAD_REQUEST,
            errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
        return _error_response(request, str(exc.detail), code, exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("api.unhandled_error", error_type=type(exc).__name__)
        return _error_response(
            request,
            "An unexpected error occurred",
            "INTERNAL_SERVER_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
