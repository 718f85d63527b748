"""
Snippetbox — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every HTTP test gets its own application built by create_app() on a
       private in-memory SQLite database (aiosqlite), with the schema created
       from the ORM metadata. Requests go through httpx's ASGITransport, so
       the full middleware stack runs without a server.

Fixture Hierarchy:
    ├── mock_db_session:  AsyncMock standing in for an AsyncSession
    ├── test_settings:    Settings for an in-memory database, bcrypt cost 4
    ├── app:              fresh application with tables created
    ├── client:           httpx AsyncClient (https://test, so Secure cookies flow)
    ├── user:             an account inserted directly through UserService
    └── auth_client:      client already logged in as `user`
"""

import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# The module-level app in snippetbox.main is built at import time from the
# environment; point it at SQLite before anything imports it.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_COST"] = "4"

from snippetbox.config import Settings  # noqa: E402
from snippetbox.database import Base  # noqa: E402
from snippetbox.main import create_app  # noqa: E402

USER_NAME = "Alice"
USER_EMAIL = "alice@example.com"
USER_PASSWORD = "pa$$word123"


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        async def test_exists(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = 1
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        bcrypt_cost=4,
        log_level="WARNING",
        session_backend="database",
        cookie_secure=True,
    )


@pytest_asyncio.fixture
async def app(test_settings):
    application = create_app(test_settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as http:
        yield http


@pytest_asyncio.fixture
async def user(app) -> dict:
    """An existing account; returns its id and credentials."""
    async with app.state.db_sessionmaker() as db:
        user_id = await app.state.user_service.insert(db, USER_NAME, USER_EMAIL, USER_PASSWORD)
        await db.commit()
    return {"id": user_id, "name": USER_NAME, "email": USER_EMAIL, "password": USER_PASSWORD}


@pytest_asyncio.fixture
async def auth_client(client, user) -> AsyncClient:
    """`client` after a successful login as `user`."""
    await client.get("/user/login")
    response = await client.post(
        "/user/login",
        data={
            "email": user["email"],
            "password": user["password"],
            "csrf_token": client.cookies["csrf_token"],
        },
    )
    assert response.status_code == 303
    return client
