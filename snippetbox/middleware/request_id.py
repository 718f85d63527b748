"""
Snippetbox — Request ID Middleware
====================================

What:  Gives every request a short correlation ID and returns it in the
       X-Request-ID response header.
How:   Reuses a well-formed client-supplied X-Request-ID, otherwise generates
       one. The ID goes into a ContextVar (for log lines written further down
       the chain) and into request.state (for handlers and error bodies).
When:  Second layer of the standard chain, right inside panic recovery.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in log lines, so only short token-like values are accepted
_CLIENT_ID_RX = re.compile(r"^[A-Za-z0-9._-]{1,64}\Z")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns the request ID.

    Behavior:
        1. Use the client's X-Request-ID if it is a short token
        2. Otherwise generate 8 hex characters
        3. Store it in request_id_var and request.state.request_id
        4. Echo it in the response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        rid = supplied if _CLIENT_ID_RX.match(supplied) else new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
