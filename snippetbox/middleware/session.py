"""
Snippetbox — Session Middleware
=================================

What:  Loads the session named by the `session` cookie before the handler and
       persists it afterwards.
How:   The SessionManager on app.state does the work; this layer only decides
       when. The loaded Session is exposed as request.state.session.

Flow:
    1. load(cookie token)        → existing session, or a fresh one
    2. handler runs              → may put/pop/remove/renew_token
    3. save(session)             → batched delete of rotated-away tokens
                                   plus commit of the current data
    4. cookie written            → only when something was saved
    5. Vary: Cookie              → on every response

A handler that raises an unhandled exception produces no response here,
so nothing is saved and the exception continues to the recovery layer.
Store failures raise DatabaseError, which the app-level handler maps to 500.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.sessions.manager import SessionManager

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        manager: SessionManager = request.app.state.session_manager

        session = await manager.load(request.cookies.get(manager.cookie_name))
        request.state.session = session

        response = await call_next(request)

        if await manager.save(session):
            manager.write_cookie(session, response)
        response.headers.add_vary_header("Cookie")
        return response
