"""
Snippetbox — Request Logging Middleware
=========================================

What:  One access-log line per request: client address, protocol, method,
       URI, status and duration.
How:   Measures from middleware entry to the response being returned, picks
       the level from the status class and tags the record with the request
       ID set by RequestIDMiddleware.
When:  Third layer of the standard chain.

Log line:
    10.0.0.7 - HTTP/1.1 POST /user/login 303 12.4ms [a1b2c3d4]

Not logged: request bodies, cookies, credentials. /health is skipped.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger("snippetbox.access")

# Probed every few seconds by orchestrators
_QUIET_PATHS = frozenset({"/health"})


def request_uri(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access logging.

    Levels:
        5xx → ERROR, 4xx → WARNING, everything else → INFO

    Requests that end in an unhandled exception never produce a response
    here; the recovery middleware logs those.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        protocol = f"HTTP/{request.scope.get('http_version', '1.1')}"
        uri = request_uri(request)
        rid = request_id_var.get("")

        logger.log(
            log_level,
            "%s - %s %s %s %d %.1fms [%s]",
            client_ip,
            protocol,
            request.method,
            uri,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": request.method,
                "uri": uri,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
