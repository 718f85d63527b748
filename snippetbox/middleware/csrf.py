"""
Snippetbox — CSRF Guard Middleware
====================================

What:  Anti-forgery protection for every state-changing request on the
       dynamic chain.
How:   Double submit bound to the session. The token lives in the session
       (key `csrf_token`) and is mirrored into the `csrf_token` cookie; pages
       expose it so the client can echo it back in the form field
       `csrf_token` or the X-CSRF-Token header.

Rules:
    Safe methods (GET, HEAD, OPTIONS, TRACE)
        Make sure the session holds a token; expose it as
        request.state.csrf_token.
    Unsafe methods
        The submitted token must equal both the cookie and the session-bound
        token (constant-time comparisons). Any mismatch or absence → 403
        before the handler runs. The response does not say which check
        failed.
    After the handler
        A rotated session token (login, logout) gets a new CSRF token.
        The cookie is (re)written whenever it differs from the bound token.

Must run inside SessionMiddleware.
"""

import hmac
import logging
import secrets
from typing import Optional

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from snippetbox.middleware.request_id import request_id_var
from snippetbox.schemas.common import ErrorResponse
from snippetbox.sessions.manager import Session

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = "csrf_token"
CSRF_COOKIE_NAME = "csrf_token"
CSRF_FIELD_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def new_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class CSRFMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session: Session = request.state.session
        token_at_start = session.token

        if request.method not in SAFE_METHODS:
            if not await self._verify(request, session):
                logger.warning(
                    "[%s] CSRF check failed on %s %s",
                    request_id_var.get(""),
                    request.method,
                    request.url.path,
                )
                return self._reject()

        bound = session.get(CSRF_SESSION_KEY)
        if not bound:
            bound = new_csrf_token()
            session.put(CSRF_SESSION_KEY, bound)
        request.state.csrf_token = bound

        response = await call_next(request)

        if session.token != token_at_start:
            bound = new_csrf_token()
            session.put(CSRF_SESSION_KEY, bound)

        if request.cookies.get(CSRF_COOKIE_NAME) != bound:
            response.set_cookie(
                key=CSRF_COOKIE_NAME,
                value=bound,
                path="/",
                secure=True,
                httponly=True,
                samesite="lax",
            )
        return response

    async def _verify(self, request: Request, session: Session) -> bool:
        submitted = request.headers.get(CSRF_HEADER_NAME)
        if submitted is None:
            submitted = await self._submitted_field(request)

        cookie = request.cookies.get(CSRF_COOKIE_NAME)
        bound = session.get(CSRF_SESSION_KEY)
        if not submitted or not cookie or not isinstance(bound, str) or not bound:
            return False
        # Both comparisons always run
        matches_cookie = _same(submitted, cookie)
        matches_session = _same(submitted, bound)
        return matches_cookie and matches_session

    async def _submitted_field(self, request: Request) -> Optional[str]:
        # Reading the body through body() first lets the handler read it again
        await request.body()
        try:
            async with request.form() as form:
                value = form.get(CSRF_FIELD_NAME)
        except (MultiPartException, HTTPException, UnicodeDecodeError) as e:
            logger.warning("Unreadable form body while checking CSRF token: %s", str(e))
            return None
        return value if isinstance(value, str) else None

    @staticmethod
    def _reject() -> JSONResponse:
        body = ErrorResponse(
            error="forbidden",
            message="Forbidden",
            request_id=request_id_var.get("") or None,
        )
        return JSONResponse(status_code=403, content=body.model_dump())
