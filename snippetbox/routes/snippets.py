"""
Snippetbox — Snippet Routes
=============================

What:  Home page, snippet view and snippet creation.

Endpoints:
    GET  /                      dynamic    latest snippets
    GET  /snippet/view/{id}     dynamic    one snippet; 404 for bad/unknown/expired ids
    GET  /snippet/create        protected  empty create form (expires defaults to 365)
    POST /snippet/create        protected  validate, insert, flash, 303 to the view

Validation (POST /snippet/create), first failure per field wins:
    title    not blank, at most 100 characters
    content  not blank
    expires  one of 1, 7, 365
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import get_session, get_snippet_service
from snippetbox.exceptions import NotFoundError
from snippetbox.forms import decode_post_form, max_chars, not_blank, permitted_values
from snippetbox.middleware import dynamic_chain, protected_chain
from snippetbox.rendering import render
from snippetbox.schemas.snippet import SnippetCreateInput, SnippetResponse
from snippetbox.services.snippet_service import SnippetService
from snippetbox.sessions.flash import put_flash
from snippetbox.sessions.manager import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Snippets"], route_class=dynamic_chain.route_class())
protected_router = APIRouter(tags=["Snippets"], route_class=protected_chain.route_class())

EXPIRY_CHOICES = (1, 7, 365)
DEFAULT_EXPIRY = 365
TITLE_MAX_CHARS = 100
# Largest value the integer primary key column holds
MAX_SNIPPET_ID = 2**31 - 1


def _parse_snippet_id(raw: str) -> Optional[int]:
    """Positive ASCII decimal within the key range, else None."""
    if not (raw.isascii() and raw.isdigit()) or len(raw) > len(str(MAX_SNIPPET_ID)):
        return None
    value = int(raw)
    if not 1 <= value <= MAX_SNIPPET_ID:
        return None
    return value


@router.get("/", summary="Latest snippets")
async def home(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
):
    snippets = await service.latest(db)
    return render(
        request,
        200,
        "home",
        snippets=[SnippetResponse.from_model(s) for s in snippets],
    )


@router.get("/snippet/view/{snippet_id}", summary="View one snippet")
async def snippet_view(
    request: Request,
    snippet_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: SnippetService = Depends(get_snippet_service),
):
    """
    The id is taken as a string so that malformed or out-of-range ids are a
    404 like unknown ones, not a validation error.
    """
    parsed_id = _parse_snippet_id(snippet_id)
    if parsed_id is None:
        raise NotFoundError(resource="snippet", resource_id=snippet_id)

    snippet = await service.get(db, parsed_id)
    return render(request, 200, "view", snippet=SnippetResponse.from_model(snippet))


@protected_router.get("/snippet/create", summary="Create snippet form")
async def snippet_create(request: Request):
    return render(
        request,
        200,
        "create",
        form={"values": {"title": "", "content": "", "expires": DEFAULT_EXPIRY}},
    )


@protected_router.post("/snippet/create", summary="Create a snippet")
async def snippet_create_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    session: Session = Depends(get_session),
    service: SnippetService = Depends(get_snippet_service),
):
    form = await decode_post_form(request, SnippetCreateInput)
    data = form.data

    form.check_field(not_blank(data.title), "title", "This field cannot be blank")
    form.check_field(
        max_chars(data.title, TITLE_MAX_CHARS),
        "title",
        "This field cannot be more than 100 characters long",
    )
    form.check_field(not_blank(data.content), "content", "This field cannot be blank")
    form.check_field(
        permitted_values(data.expires, EXPIRY_CHOICES),
        "expires",
        "This field must be one of the following values: 1, 7, or 365",
    )

    if not form.valid:
        return render(request, 422, "create", form=form.to_state())

    snippet_id = await service.insert(db, data.title, data.content, data.expires)
    # Committed before the client can follow the redirect to the new snippet
    await db.commit()
    put_flash(session, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=303)
