"""
Snippetbox — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the collaborators (engine, sessionmaker,
       session store and manager, user service), hangs them on app.state,
       installs the standard chain and mounts the routers.
Who:   uvicorn (`uvicorn snippetbox.main:app`, or the `snippetbox` console
       script which also wires TLS), and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │  standard chain (app-wide)                                   │
    │  RecoverPanic → RequestID → RequestLogging → SecurityHeaders │
    │                                                              │
    │  Routes:                                                     │
    │  ┌──────────────────────────┐  ┌──────────────────────────┐  │
    │  │ dynamic chain            │  │ protected chain          │  │
    │  │ Session → CSRF → Auth    │  │ dynamic + RequireAuth    │  │
    │  │ GET /, /snippet/view/…   │  │ GET|POST /snippet/create │  │
    │  │ GET|POST /user/signup    │  │ POST /user/logout        │  │
    │  │ GET|POST /user/login     │  │                          │  │
    │  └──────────────────────────┘  └──────────────────────────┘  │
    │  GET /health (standard chain only)                           │
    │                                                              │
    │  Exception Handlers:                                         │
    │  BadRequest→400 │ NotFound→404 │ Database→500 │ HTTP errors  │
    │  anything else → RecoverPanic → 500, Connection: close       │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (fail fast)
    3. Wait for the database (tenacity retries; final failure aborts startup)
    4. Start the expired-session purge task

    Shutdown:
    1. Stop the purge task
    2. Dispose the database engine
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from snippetbox import __version__
from snippetbox.config import Settings, settings as default_settings
from snippetbox.database import (
    create_engine,
    create_sessionmaker,
    dispose_engine,
    wait_for_database,
)
from snippetbox.exceptions import BadRequestError, DatabaseError, NotFoundError
from snippetbox.middleware import standard_chain
from snippetbox.middleware.logging import request_uri
from snippetbox.middleware.request_id import request_id_var
from snippetbox.rendering import error_response
from snippetbox.routes import health, snippets, users
from snippetbox.services.user_service import UserService
from snippetbox.sessions import MemorySessionStore, SessionManager, SessionStore, SQLSessionStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the whole process.

    Format: 2026-03-17T10:15:00 [INFO] snippetbox.access: 10.0.0.7 - HTTP/1.1 GET / 200 3.1ms [a1b2c3d4]
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # uvicorn's own access log duplicates snippetbox.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Background Tasks
# ══════════════════════════════════════════════════════════════════════════

async def purge_expired_sessions(store: SessionStore, interval: float) -> None:
    """Delete expired sessions every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await store.delete_expired()
        except DatabaseError as e:
            logger.warning("Session purge failed, retrying next cycle: %s", e.context)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("=" * 60)
    logger.info("Snippetbox %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    await wait_for_database(app.state.engine, settings.startup_db_retries)
    logger.info("Database connection pool established")

    purge_task = asyncio.create_task(
        purge_expired_sessions(app.state.session_store, settings.session_cleanup_interval)
    )

    scheme = "https" if settings.tls_cert_file else "http"
    logger.info("Server ready at %s://%s:%d", scheme, settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Snippetbox shutting down...")
    purge_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await purge_task

    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        BadRequestError          → 400 (malformed submission)
        NotFoundError            → 404
        DatabaseError            → 500 (generic message, context logged)
        Starlette HTTPException  → its own status (unknown route, bad method)

    No catch-all handler is registered: anything else reaches
    RecoverPanicMiddleware, which logs it and closes the connection.
    Response bodies never contain internal details.
    """

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        logger.warning(
            "[%s] Bad request on %s %s: %s",
            request_id_var.get(""),
            request.method,
            request_uri(request),
            exc.context,
        )
        details = {"field": exc.field} if exc.field else None
        return error_response(400, "bad_request", exc.message, details)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", "Not Found")

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error on %s %s: %s | Context: %s",
            request_id_var.get(""),
            request.method,
            request_uri(request),
            exc.message,
            exc.context,
            exc_info=exc.__cause__ is not None,
        )
        return error_response(500, "server_error", "Internal Server Error")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        response = error_response(
            exc.status_code,
            "http_error",
            exc.detail if isinstance(exc.detail, str) else "Error",
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_session_store(settings: Settings, session_factory) -> SessionStore:
    if settings.session_backend == "memory":
        return MemorySessionStore()
    return SQLSessionStore(session_factory)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the application.

    Args:
        settings: Configuration to use; defaults to the environment-derived
                  module settings. Tests pass their own.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Snippetbox",
        description="Share short text snippets. Pages are served as JSON documents.",
        version=__version__,
        lifespan=lifespan,
    )

    engine = create_engine(settings)
    db_sessionmaker = create_sessionmaker(engine)
    store = build_session_store(settings, db_sessionmaker)

    app.state.settings = settings
    app.state.engine = engine
    app.state.db_sessionmaker = db_sessionmaker
    app.state.session_store = store
    app.state.session_manager = SessionManager(
        store,
        lifetime=settings.session_lifetime,
        cookie_secure=settings.cookie_secure,
    )
    app.state.user_service = UserService(bcrypt_cost=settings.bcrypt_cost)

    # ── Middleware ────────────────────────────────────────────────────────
    standard_chain.install(app)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(snippets.router)
    app.include_router(snippets.protected_router)
    app.include_router(users.router)
    app.include_router(users.protected_router)
    app.include_router(health.router)

    return app


# uvicorn snippetbox.main:app
app = create_app()


def run() -> None:
    """Console entry point: serve `app` with the configured address and TLS files."""
    settings: Settings = app.state.settings
    uvicorn.run(
        app,
        host=settings.backend_host,
        port=settings.backend_port,
        ssl_certfile=settings.tls_cert_file,
        ssl_keyfile=settings.tls_key_file,
        log_config=None,
    )


if __name__ == "__main__":
    run()
