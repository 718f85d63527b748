# Middleware package init
"""
Snippetbox — Middleware Package
=================================

What:  Cross-cutting request handling, composed into three chains.

Chains (first = outermost):
    standard_chain   RecoverPanic → RequestID → RequestLogging → SecurityHeaders
                     installed on the whole application
    dynamic_chain    Session → CSRF → Authenticate
                     applied per route to every page handler
    protected_chain  dynamic_chain + RequireAuthentication
                     applied per route to handlers that need a logged-in user

Request path:
    standard_chain → routing → dynamic/protected chain → handler

Response path runs the same layers in reverse: the session is saved before
the security headers and the request ID are added, and the access log sees
the final status.
"""

from snippetbox.middleware.auth import (
    AuthenticateMiddleware,
    Authentication,
    RequireAuthenticationMiddleware,
)
from snippetbox.middleware.chain import Chain
from snippetbox.middleware.csrf import CSRFMiddleware
from snippetbox.middleware.headers import SecurityHeadersMiddleware
from snippetbox.middleware.logging import RequestLoggingMiddleware
from snippetbox.middleware.recovery import RecoverPanicMiddleware
from snippetbox.middleware.request_id import RequestIDMiddleware
from snippetbox.middleware.session import SessionMiddleware

standard_chain = Chain(
    RecoverPanicMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)

dynamic_chain = Chain(
    SessionMiddleware,
    CSRFMiddleware,
    AuthenticateMiddleware,
)

protected_chain = dynamic_chain.append(RequireAuthenticationMiddleware)

__all__ = [
    "AuthenticateMiddleware",
    "Authentication",
    "CSRFMiddleware",
    "Chain",
    "RecoverPanicMiddleware",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "RequireAuthenticationMiddleware",
    "SecurityHeadersMiddleware",
    "SessionMiddleware",
    "dynamic_chain",
    "protected_chain",
    "standard_chain",
]
