"""
Snippetbox — Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for the error scenarios of the request
       pipeline and the persistence layer.
How:   Each exception carries a user-safe message and an optional context dict.
       Global exception handlers (registered in main.py) map the HTTP-facing
       ones to status codes; domain errors are caught by handlers and turned
       into form errors.
Who:   Raised by services, the form decoder and middleware.

Exception Hierarchy:
    SnippetboxError (base)
    ├── BadRequestError          → 400 Bad Request (malformed submission)
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    ├── DuplicateEmailError      → handled in the signup handler (field error)
    └── InvalidCredentialsError  → handled in the login handler (non-field error)

CSRF failures and unauthenticated access are answered directly by their
middleware (403 and 303) and have no exception type.
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """
    Base exception for all Snippetbox application errors.

    Attributes:
        message:  User-facing error description (safe to return in a response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(SnippetboxError):
    """
    Raised when a submission cannot be decoded.

    When:    Unparseable form body, or a value that cannot be coerced to the
             declared field type (e.g. expires=abc).
    HTTP:    400 Bad Request

    Field-level validation failures are NOT this error: they are collected in
    a ValidationResult and re-rendered with 422.
    """

    def __init__(
        self,
        message: str = "Bad Request",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(SnippetboxError):
    """
    Raised when a requested resource does not exist.

    When:    GET /snippet/view/{id} for a missing or expired snippet.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(SnippetboxError):
    """
    Raised when database or session-store operations fail unexpectedly.

    When:    Connection lost, unexpected constraint violation, store unreachable.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context
    (original exception type, query subject) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateEmailError(SnippetboxError):
    """Signup attempted with an email address that already has an account."""

    def __init__(self, email: str = ""):
        super().__init__(
            message="Email address is already in use",
            context={"email": email} if email else None,
        )


class InvalidCredentialsError(SnippetboxError):
    """
    Login failed.

    Raised identically for an unknown email and for a wrong password so
    callers cannot tell the two apart.
    """

    def __init__(self):
        super().__init__(message="Email or password is incorrect")
