"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (tables, engine disposal).
Middleware, CORS, exception handlers and routers are all registered here.

Everything the auth core needs (codec, hasher, engine) is built from the
Settings passed in and hung on app.state, so tests call
create_app(test_settings) and get a fully isolated app.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskmaster import __version__
from taskmaster.api import api_router
from taskmaster.api.errors import setup_exception_handlers
from taskmaster.auth.jwt import CredentialCodec
from taskmaster.auth.password import PasswordHasher
from taskmaster.config import Settings
from taskmaster.db.engine import build_engine, build_session_factory, init_models
from taskmaster.logging import configure_logging
from taskmaster.middleware.authentication import AuthenticationMiddleware
from taskmaster.middleware.request_id import RequestIdMiddleware
from taskmaster.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "taskmaster.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    await init_models(app.state.engine)

    yield

    logger.info("taskmaster.shutdown")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="Taskmaster",
        description="Task management API with JWT authentication",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.codec = CredentialCodec.from_settings(settings)
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    setup_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → Authentication → handler

    app.add_middleware(
        AuthenticationMiddleware,
        codec=app.state.codec,
        public_paths=settings.public_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


def run() -> None:
    """Serve the app with uvicorn (the `taskmaster-server` script)."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "taskmaster.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


# Default app instance (used by uvicorn: taskmaster.main:app)
app = create_app()
