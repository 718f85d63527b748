"""
Snippetbox — Route Dependencies
=================================

What:  FastAPI dependencies that hand handlers the per-request state built by
       the dynamic chain and the collaborators stored on app.state.
How:   Plain functions over `request`; nothing here creates state. A handler
       that asks for the session on a route outside the dynamic chain gets a
       RuntimeError (a wiring mistake, answered by the recovery layer).

Example:
    @router.post("/user/logout")
    async def logout(session: Session = Depends(get_session)):
        ...
"""

from fastapi import Request

from snippetbox.middleware.auth import ANONYMOUS, Authentication
from snippetbox.services.snippet_service import SnippetService, snippet_service
from snippetbox.services.user_service import UserService
from snippetbox.sessions.manager import Session


def get_session(request: Request) -> Session:
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError(f"No session on {request.url.path}; is the route on the dynamic chain?")
    return session


def get_authentication(request: Request) -> Authentication:
    return getattr(request.state, "auth", ANONYMOUS)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_snippet_service() -> SnippetService:
    return snippet_service
