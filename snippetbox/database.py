"""
Snippetbox — Database Engine & Session Management
===================================================

What:  Async SQLAlchemy engine factory, session factory, base model, and the
       FastAPI dependency that hands a database session to route handlers.
How:   The application factory builds one engine per app from Settings and
       stores the engine and sessionmaker on `app.state`. Handlers receive a
       session per request that commits on success and rolls back on error.
Who:   Route handlers (via Depends), the authentication middleware, the SQL
       session store, and the health check.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from Settings.
    pool_recycle=3600 recycles connections hourly.
    SQLite URLs (tests) skip pool arguments; in-memory SQLite uses a
    StaticPool so every session shares the single connection that holds
    the database.
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from snippetbox.config import Settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared
    metadata (used by Alembic and by the test suite's create_all).
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def create_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine for the configured database URL.

    PostgreSQL gets the pooled configuration from Settings; SQLite gets the
    arguments its driver accepts.
    """
    echo = settings.log_level == "DEBUG"

    if settings.uses_sqlite:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if make_url(settings.database_url).database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_async_engine(settings.database_url, echo=echo, **kwargs)

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps loaded attributes usable after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's sessionmaker
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/")
        async def home(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.db_sessionmaker
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping(engine: AsyncEngine) -> None:
    """Run SELECT 1; raises SQLAlchemyError when the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(engine: AsyncEngine, attempts: int) -> None:
    """
    What:  Blocks startup until the database answers, retrying with backoff.
    When:  Called from the lifespan handler before the app accepts traffic.
    How:   tenacity retries `ping` on SQLAlchemyError; the final failure
           propagates and aborts startup.
    """
    retrying = retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=1, max=10),
        retry=retry_if_exception_type(SQLAlchemyError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    await retrying(ping)(engine)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
