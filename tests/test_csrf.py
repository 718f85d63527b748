"""
Snippetbox — CSRF Guard Tests
===============================

What we test:
    ✅ Safe requests issue a token (cookie == page token == session token)
    ✅ Unsafe requests without, or with a wrong, token → 403 before the handler
    ✅ A token from another session is rejected even with a matching cookie
    ✅ The X-CSRF-Token header is accepted in place of the form field
    ✅ The token changes when the session token rotates at login
    ✅ The CSRF cookie is Secure even when COOKIE_SECURE is off
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from snippetbox.config import Settings
from snippetbox.main import create_app
from snippetbox.models import User

SIGNUP = {"name": "Bob", "email": "bob@example.com", "password": "correct-horse"}


async def count_users(app) -> int:
    async with app.state.db_sessionmaker() as db:
        return (await db.execute(select(func.count()).select_from(User))).scalar_one()


class TestCSRFGuard:

    @pytest.mark.asyncio
    async def test_get_issues_token(self, client):
        response = await client.get("/user/signup")

        token = response.json()["csrf_token"]
        assert token
        assert response.cookies["csrf_token"] == token
        set_cookie = [v for v in response.headers.get_list("set-cookie") if v.startswith("csrf_token=")]
        assert "HttpOnly" in set_cookie[0]
        assert "Secure" in set_cookie[0]

    @pytest.mark.asyncio
    async def test_token_is_stable_within_a_session(self, client):
        first = (await client.get("/user/signup")).json()["csrf_token"]
        second = (await client.get("/")).json()["csrf_token"]
        assert first == second

    @pytest.mark.asyncio
    async def test_missing_token_is_forbidden(self, app, client):
        await client.get("/user/signup")

        response = await client.post("/user/signup", data=SIGNUP)

        assert response.status_code == 403
        assert response.json()["message"] == "Forbidden"
        assert await count_users(app) == 0

    @pytest.mark.asyncio
    async def test_wrong_token_is_forbidden(self, app, client):
        await client.get("/user/signup")

        response = await client.post("/user/signup", data={**SIGNUP, "csrf_token": "guess"})

        assert response.status_code == 403
        assert await count_users(app) == 0

    @pytest.mark.asyncio
    async def test_post_without_session_is_forbidden(self, client):
        response = await client.post("/user/login", data={"email": "a@b.co", "password": "x"})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_valid_token_reaches_handler(self, app, client):
        await client.get("/user/signup")

        response = await client.post(
            "/user/signup", data={**SIGNUP, "csrf_token": client.cookies["csrf_token"]}
        )

        assert response.status_code == 303
        assert await count_users(app) == 1

    @pytest.mark.asyncio
    async def test_header_token_is_accepted(self, client):
        await client.get("/user/login")

        response = await client.post(
            "/user/login",
            data={"email": "nobody@example.com", "password": "whatever"},
            headers={"X-CSRF-Token": client.cookies["csrf_token"]},
        )

        # Past the guard: the login handler answered
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_token_from_another_session_is_rejected(self, app, client):
        await client.get("/user/signup")
        foreign_token = client.cookies["csrf_token"]

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="https://test") as other:
            await other.get("/user/signup")
            other.cookies.delete("csrf_token")
            other.cookies.set("csrf_token", foreign_token)

            response = await other.post(
                "/user/signup", data={**SIGNUP, "csrf_token": foreign_token}
            )

        assert response.status_code == 403
        assert await count_users(app) == 0

    @pytest.mark.asyncio
    async def test_token_rotates_with_login(self, client, user):
        await client.get("/user/login")
        before = client.cookies["csrf_token"]

        response = await client.post(
            "/user/login",
            data={"email": user["email"], "password": user["password"], "csrf_token": before},
        )

        assert response.status_code == 303
        after = response.cookies["csrf_token"]
        assert after != before
        page = await client.get("/snippet/create")
        assert page.json()["csrf_token"] == after

    @pytest.mark.asyncio
    async def test_csrf_cookie_is_always_secure(self):
        settings = Settings(
            database_url="sqlite+aiosqlite://",
            session_backend="memory",
            cookie_secure=False,
        )
        application = create_app(settings)

        async with AsyncClient(
            transport=ASGITransport(app=application), base_url="https://test"
        ) as http:
            response = await http.get("/user/signup")
        await application.state.engine.dispose()

        cookies = {v.split("=", 1)[0]: v for v in response.headers.get_list("set-cookie")}
        assert "Secure" in cookies["csrf_token"]
        assert "Secure" not in cookies["session"]
