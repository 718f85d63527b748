"""
Snippetbox — Authentication Resolver & Route Guard
====================================================

What:  AuthenticateMiddleware derives the request's Authentication from the
       session; RequireAuthenticationMiddleware turns unauthenticated
       requests away from protected routes.
How:   The session only stores a user id under `authenticatedUserID`. The
       resolver re-checks that the user still exists on every request, so a
       deleted account stops being authenticated on its next request.

Resolution:
    no id in session            → anonymous
    id, user exists             → Authentication(user_id=id)
    id, user gone               → anonymous; the stale id is removed
    id, lookup fails            → DatabaseError (500); the request stops

Guard:
    anonymous      → 303 See Other to /user/login, handler not run
    authenticated  → handler runs; response gets Cache-Control: no-store
"""

import logging
from dataclasses import dataclass
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from snippetbox.middleware.request_id import request_id_var
from snippetbox.sessions.manager import Session

logger = logging.getLogger(__name__)

AUTH_USER_KEY = "authenticatedUserID"
LOGIN_PATH = "/user/login"


@dataclass(frozen=True)
class Authentication:
    """Who is making this request. Built once per request, never cached."""

    user_id: Optional[int] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Authentication()


class AuthenticateMiddleware(BaseHTTPMiddleware):
    """Sets request.state.auth. Must run inside SessionMiddleware."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session: Session = request.state.session
        request.state.auth = await self._resolve(request, session)
        return await call_next(request)

    async def _resolve(self, request: Request, session: Session) -> Authentication:
        user_id = session.get(AUTH_USER_KEY)
        if user_id is None:
            return ANONYMOUS

        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.warning("[%s] Dropping malformed user id from session", request_id_var.get(""))
            session.remove(AUTH_USER_KEY)
            return ANONYMOUS

        user_service = request.app.state.user_service
        async with request.app.state.db_sessionmaker() as db:
            exists = await user_service.exists(db, user_id)

        if not exists:
            logger.info(
                "[%s] Session refers to missing user %s; treating as anonymous",
                request_id_var.get(""),
                user_id,
            )
            session.remove(AUTH_USER_KEY)
            return ANONYMOUS

        return Authentication(user_id=user_id)


class RequireAuthenticationMiddleware(BaseHTTPMiddleware):
    """Route guard. Must run inside AuthenticateMiddleware."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        auth: Authentication = getattr(request.state, "auth", ANONYMOUS)
        if not auth.is_authenticated:
            return RedirectResponse(LOGIN_PATH, status_code=303)

        response = await call_next(request)
        # Pages behind login must not be stored by shared caches
        response.headers["Cache-Control"] = "no-store"
        return response
