"""
Snippetbox — Page Rendering
=============================

What:  Builds the JSON page responses that stand in for server-rendered
       templates, and the ErrorResponse bodies used by exception handlers.
How:   render() collects the data every page shares (year, flash, auth
       state, CSRF token) from request.state and merges in the page-specific
       fields. The flash message is popped, so it is shown exactly once.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse

from snippetbox.dependencies import get_authentication
from snippetbox.middleware.request_id import request_id_var
from snippetbox.schemas.common import ErrorResponse, PageResponse
from snippetbox.sessions.flash import pop_flash


def render(request: Request, status_code: int, page: str, **data: Any) -> JSONResponse:
    """
    Render `page` with `data` (form, snippet, snippets).

    Args:
        request:     Current request; must have passed the dynamic chain
        status_code: 200 for normal renders, 422 for a form with errors
        page:        View name: home, view, create, signup, login
    """
    session = getattr(request.state, "session", None)
    auth = get_authentication(request)

    body = PageResponse(
        page=page,
        current_year=datetime.now(timezone.utc).year,
        flash=pop_flash(session) if session is not None else None,
        is_authenticated=auth.is_authenticated,
        csrf_token=getattr(request.state, "csrf_token", None),
        **data,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=request_id_var.get("") or None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())
