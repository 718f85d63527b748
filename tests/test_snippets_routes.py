"""
Snippetbox — Snippet Route Tests
==================================

What we test:
    ✅ Home lists unexpired snippets, newest first, at most ten
    ✅ View: malformed, non-positive, unknown and expired ids are all 404
    ✅ Create: form defaults, field errors (422), undecodable expires (400),
       success → 303 to the new snippet with a one-shot flash
    ✅ Anonymous create submissions are redirected to login
"""

import pytest

from snippetbox.services.snippet_service import snippet_service


async def add_snippet(app, title="An old silent pond", content="A frog jumps into the pond", days=7):
    async with app.state.db_sessionmaker() as db:
        snippet_id = await snippet_service.insert(db, title, content, days)
        await db.commit()
    return snippet_id


class TestHome:

    @pytest.mark.asyncio
    async def test_empty_home(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        page = response.json()
        assert page["page"] == "home"
        assert page["snippets"] == []
        assert page["is_authenticated"] is False
        assert page["current_year"] >= 2024

    @pytest.mark.asyncio
    async def test_latest_first_and_expired_hidden(self, app, client):
        await add_snippet(app, title="expired", days=-1)
        ids = [await add_snippet(app, title=f"snippet {n}") for n in range(12)]

        snippets = (await client.get("/")).json()["snippets"]

        assert [s["id"] for s in snippets] == list(reversed(ids))[:10]
        assert all(s["title"] != "expired" for s in snippets)
        assert " at " in snippets[0]["created_display"]


class TestView:

    @pytest.mark.asyncio
    async def test_view_existing(self, app, client):
        snippet_id = await add_snippet(app)

        response = await client.get(f"/snippet/view/{snippet_id}")

        assert response.status_code == 200
        page = response.json()
        assert page["page"] == "view"
        assert page["snippet"]["title"] == "An old silent pond"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw_id",
        ["abc", "0", "-1", "1.5", "99", "2147483648", "99999999999999999999999", "9" * 5000],
    )
    async def test_invalid_or_unknown_ids(self, client, raw_id):
        response = await client.get(f"/snippet/view/{raw_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_expired_snippet_is_not_found(self, app, client):
        snippet_id = await add_snippet(app, days=-1)
        response = await client.get(f"/snippet/view/{snippet_id}")
        assert response.status_code == 404


class TestCreate:

    @pytest.mark.asyncio
    async def test_form_defaults(self, auth_client):
        page = (await auth_client.get("/snippet/create")).json()

        assert page["page"] == "create"
        assert page["form"]["values"]["expires"] == 365

    @pytest.mark.asyncio
    async def test_create_and_view_with_flash(self, auth_client):
        response = await auth_client.post(
            "/snippet/create",
            data={
                "title": "O snail",
                "content": "Climb Mount Fuji,\nBut slowly, slowly!",
                "expires": "7",
                "csrf_token": auth_client.cookies["csrf_token"],
            },
        )

        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("/snippet/view/")

        page = (await auth_client.get(location)).json()
        assert page["snippet"]["title"] == "O snail"
        assert page["flash"] == "Snippet successfully created!"
        assert (await auth_client.get(location)).json()["flash"] is None

    @pytest.mark.asyncio
    async def test_field_errors(self, auth_client):
        response = await auth_client.post(
            "/snippet/create",
            data={
                "title": "x" * 101,
                "content": "   ",
                "expires": "30",
                "csrf_token": auth_client.cookies["csrf_token"],
            },
        )

        assert response.status_code == 422
        form = response.json()["form"]
        assert form["field_errors"] == {
            "title": "This field cannot be more than 100 characters long",
            "content": "This field cannot be blank",
            "expires": "This field must be one of the following values: 1, 7, or 365",
        }
        assert form["values"]["title"] == "x" * 101

    @pytest.mark.asyncio
    async def test_title_of_100_characters_is_accepted(self, auth_client):
        response = await auth_client.post(
            "/snippet/create",
            data={
                "title": "é" * 100,
                "content": "c",
                "expires": "1",
                "csrf_token": auth_client.cookies["csrf_token"],
            },
        )
        assert response.status_code == 303

    @pytest.mark.asyncio
    async def test_undecodable_expires_is_bad_request(self, auth_client):
        response = await auth_client.post(
            "/snippet/create",
            data={
                "title": "t",
                "content": "c",
                "expires": "abc",
                "csrf_token": auth_client.cookies["csrf_token"],
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "bad_request"
        assert body["details"] == {"field": "expires"}

    @pytest.mark.asyncio
    async def test_anonymous_submission_goes_to_login(self, client):
        await client.get("/")

        response = await client.post(
            "/snippet/create",
            data={"title": "t", "content": "c", "expires": "7", "csrf_token": client.cookies["csrf_token"]},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"
