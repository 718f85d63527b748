"""
Snippetbox — Panic Recovery Middleware
========================================

What:  Last line of defense: turns any exception that escaped the handlers
       and the registered exception handlers into a generic 500.
How:   Outermost layer of the standard chain. Logs method, URI and cause at
       ERROR with the stack trace, then answers with an ErrorResponse body
       and `Connection: close` so the server drops the connection that
       carried the failed request.

The client never sees the exception text. Inner layers of the standard
chain did not get to decorate this response, so the security headers and
the request ID are added here.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from snippetbox.middleware.headers import apply_security_headers
from snippetbox.middleware.logging import request_uri
from snippetbox.middleware.request_id import REQUEST_ID_HEADER
from snippetbox.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def internal_error_response(request_id: str = "") -> JSONResponse:
    body = ErrorResponse(
        error="internal_server_error",
        message="Internal Server Error",
        request_id=request_id or None,
    )
    return JSONResponse(status_code=500, content=body.model_dump())


class RecoverPanicMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            rid = getattr(request.state, "request_id", "")
            logger.error(
                "[%s] Unhandled error on %s %s: %s: %s",
                rid,
                request.method,
                request_uri(request),
                type(exc).__name__,
                str(exc),
                exc_info=True,
            )
            response = internal_error_response(rid)
            response.headers["Connection"] = "close"
            apply_security_headers(response.headers)
            if rid:
                response.headers[REQUEST_ID_HEADER] = rid
            return response
