"""
Snippetbox — Middleware Chain & Standard Chain Tests
======================================================

What we test:
    ✅ Chain.then / install / route_class keep the first element outermost
    ✅ append() returns a new chain and leaves the base untouched
    ✅ Security headers, X-Request-ID and Vary: Cookie on page responses
    ✅ An unhandled error becomes a generic 500 with Connection: close,
       logged at ERROR with method and URI
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse

from snippetbox.dependencies import get_snippet_service
from snippetbox.middleware import Chain, dynamic_chain, protected_chain, standard_chain
from snippetbox.middleware.headers import SECURITY_HEADERS


class Recorder(BaseHTTPMiddleware):
    """Appends '<name>:in' / '<name>:out' around the rest of the chain."""

    def __init__(self, app, name, log):
        super().__init__(app)
        self.name = name
        self.log = log

    async def dispatch(self, request, call_next):
        self.log.append(f"{self.name}:in")
        response = await call_next(request)
        self.log.append(f"{self.name}:out")
        return response


def recording_chain(log, *names):
    return Chain(*(Middleware(Recorder, name=name, log=log) for name in names))


async def get_text(app, path="/"):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as client:
        return await client.get(path)


class TestChain:

    @pytest.mark.asyncio
    async def test_then_runs_first_element_outermost(self):
        log = []

        async def endpoint(scope, receive, send):
            log.append("handler")
            await PlainTextResponse("ok")(scope, receive, send)

        response = await get_text(recording_chain(log, "a", "b", "c").then(endpoint))

        assert response.text == "ok"
        assert log == ["a:in", "b:in", "c:in", "handler", "c:out", "b:out", "a:out"]

    def test_append_returns_new_chain(self):
        log = []
        base = recording_chain(log, "a", "b")
        extended = base.append(Middleware(Recorder, name="c", log=log))

        assert len(base) == 2
        assert len(extended) == 3
        assert [spec.kwargs["name"] for spec in extended] == ["a", "b", "c"]

    def test_bare_classes_are_accepted(self):
        chain = Chain(BaseHTTPMiddleware)
        assert [spec.cls for spec in chain] == [BaseHTTPMiddleware]

    @pytest.mark.asyncio
    async def test_install_preserves_order(self):
        log = []
        app = FastAPI()
        recording_chain(log, "outer", "inner").install(app)

        @app.get("/")
        async def index():
            log.append("handler")
            return PlainTextResponse("ok")

        await get_text(app)

        assert log == ["outer:in", "inner:in", "handler", "inner:out", "outer:out"]

    @pytest.mark.asyncio
    async def test_route_class_wraps_only_its_routes(self):
        log = []
        wrapped = APIRouter(route_class=recording_chain(log, "route").route_class())
        plain = APIRouter()

        @wrapped.get("/wrapped")
        async def wrapped_view():
            return PlainTextResponse("wrapped")

        @plain.get("/plain")
        async def plain_view():
            return PlainTextResponse("plain")

        app = FastAPI()
        app.include_router(wrapped)
        app.include_router(plain)

        await get_text(app, "/plain")
        assert log == []

        await get_text(app, "/wrapped")
        assert log == ["route:in", "route:out"]

    @pytest.mark.asyncio
    async def test_route_class_survives_nested_prefixed_include(self):
        log = []
        inner = APIRouter(route_class=recording_chain(log, "outer", "inner").route_class())

        @inner.get("/items/{item_id}")
        async def item_view(item_id: int):
            log.append(f"handler:{item_id}")
            return PlainTextResponse("item")

        outer = APIRouter()
        outer.include_router(inner, prefix="/v1")
        app = FastAPI()
        app.include_router(outer, prefix="/api")

        response = await get_text(app, "/api/v1/items/7")

        assert response.status_code == 200
        assert log == ["outer:in", "inner:in", "handler:7", "inner:out", "outer:out"]

    def test_application_chains(self):
        assert [spec.cls.__name__ for spec in standard_chain] == [
            "RecoverPanicMiddleware",
            "RequestIDMiddleware",
            "RequestLoggingMiddleware",
            "SecurityHeadersMiddleware",
        ]
        assert [spec.cls.__name__ for spec in protected_chain] == [
            "SessionMiddleware",
            "CSRFMiddleware",
            "AuthenticateMiddleware",
            "RequireAuthenticationMiddleware",
        ]
        assert len(dynamic_chain) == 3


class TestStandardChain:

    @pytest.mark.asyncio
    async def test_security_headers_and_request_id(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value
        assert len(response.headers["X-Request-ID"]) == 8
        assert "Cookie" in response.headers["Vary"]

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unusable_client_request_id_is_replaced(self, client):
        response = await client.get("/", headers={"X-Request-ID": "bad id with spaces"})
        assert response.headers["X-Request-ID"] != "bad id with spaces"

    @pytest.mark.asyncio
    async def test_not_found_route_has_headers(self, client):
        response = await client.get("/missing")
        assert response.status_code == 404
        assert response.headers["X-Frame-Options"] == "deny"


class TestRecoverPanic:

    @pytest.mark.asyncio
    async def test_unhandled_error_becomes_500(self, app, client, caplog):
        broken = MagicMock()
        broken.latest = AsyncMock(side_effect=RuntimeError("secret internal detail"))
        app.dependency_overrides[get_snippet_service] = lambda: broken

        with caplog.at_level(logging.ERROR, logger="snippetbox.middleware.recovery"):
            response = await client.get("/?page=1")

        assert response.status_code == 500
        assert response.headers["Connection"] == "close"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert "secret internal detail" not in response.text

        record = next(r for r in caplog.records if r.name == "snippetbox.middleware.recovery")
        assert record.levelno == logging.ERROR
        assert "GET /?page=1" in record.getMessage()
        assert "secret internal detail" in record.getMessage()

    @pytest.mark.asyncio
    async def test_crash_skips_session_save(self, app, client):
        broken = MagicMock()
        broken.latest = AsyncMock(side_effect=RuntimeError("boom"))
        app.dependency_overrides[get_snippet_service] = lambda: broken

        response = await client.get("/")

        assert response.status_code == 500
        assert "session" not in response.cookies
