"""
Snippetbox — Account Routes
=============================

What:  Signup, login and logout: the transitions of the authentication
       state machine.

Endpoints:
    GET  /user/signup    dynamic    empty signup form
    POST /user/signup    dynamic    create account, flash, 303 to /user/login
    GET  /user/login     dynamic    empty login form
    POST /user/login     dynamic    rotate token, store user id, 303 to /snippet/create
    POST /user/logout    protected  rotate token, drop user id, flash, 303 to /

Session token rotation:
    Both login and logout call session.renew_token(). The old token is
    deleted from the store when the session is saved, and the CSRF guard
    issues a fresh anti-forgery token for the new session token.

Login while already authenticated is allowed; it rotates again and replaces
the stored user id.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import get_authentication, get_session, get_user_service
from snippetbox.exceptions import DuplicateEmailError, InvalidCredentialsError
from snippetbox.forms import EMAIL_RX, decode_post_form, matches, min_chars, not_blank
from snippetbox.middleware import dynamic_chain, protected_chain
from snippetbox.middleware.auth import AUTH_USER_KEY, Authentication
from snippetbox.rendering import render
from snippetbox.schemas.user import LoginInput, SignupInput
from snippetbox.services.user_service import BCRYPT_MAX_PASSWORD_BYTES, UserService
from snippetbox.sessions.flash import put_flash
from snippetbox.sessions.manager import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"], route_class=dynamic_chain.route_class())
protected_router = APIRouter(tags=["Users"], route_class=protected_chain.route_class())

BLANK = "This field cannot be blank"
PASSWORD_MIN_CHARS = 8

# Never echoed back to the client
_SECRET_FIELDS = ("password",)


def _empty_form(*fields: str) -> dict:
    return {"values": {name: "" for name in fields if name not in _SECRET_FIELDS}}


# ── Signup ────────────────────────────────────────────────────────────────


@router.get("/user/signup", summary="Signup form")
async def user_signup(request: Request):
    return render(request, 200, "signup", form=_empty_form("name", "email"))


@router.post("/user/signup", summary="Create an account")
async def user_signup_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    session: Session = Depends(get_session),
    users: UserService = Depends(get_user_service),
):
    form = await decode_post_form(request, SignupInput)
    data = form.data

    form.check_field(not_blank(data.name), "name", BLANK)
    form.check_field(not_blank(data.email), "email", BLANK)
    form.check_field(
        matches(data.email, EMAIL_RX), "email", "This field must be a valid email address"
    )
    form.check_field(not_blank(data.password), "password", BLANK)
    form.check_field(
        min_chars(data.password, PASSWORD_MIN_CHARS),
        "password",
        "This field must be at least 8 characters long",
    )
    form.check_field(
        len(data.password.encode("utf-8")) <= BCRYPT_MAX_PASSWORD_BYTES,
        "password",
        "This field cannot be more than 72 bytes long",
    )

    if not form.valid:
        return render(request, 422, "signup", form=form.to_state(exclude=_SECRET_FIELDS))

    try:
        await users.insert(db, data.name, data.email, data.password)
    except DuplicateEmailError as e:
        form.add_field_error("email", e.message)
        return render(request, 422, "signup", form=form.to_state(exclude=_SECRET_FIELDS))

    await db.commit()
    put_flash(session, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=303)


# ── Login ─────────────────────────────────────────────────────────────────


@router.get("/user/login", summary="Login form")
async def user_login(request: Request):
    return render(request, 200, "login", form=_empty_form("email"))


@router.post("/user/login", summary="Log in")
async def user_login_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    session: Session = Depends(get_session),
    users: UserService = Depends(get_user_service),
):
    form = await decode_post_form(request, LoginInput)
    data = form.data

    form.check_field(not_blank(data.email), "email", BLANK)
    form.check_field(
        matches(data.email, EMAIL_RX), "email", "This field must be a valid email address"
    )
    form.check_field(not_blank(data.password), "password", BLANK)

    if not form.valid:
        return render(request, 422, "login", form=form.to_state(exclude=_SECRET_FIELDS))

    try:
        user_id = await users.authenticate(db, data.email, data.password)
    except InvalidCredentialsError as e:
        form.add_non_field_error(e.message)
        return render(request, 422, "login", form=form.to_state(exclude=_SECRET_FIELDS))

    session.renew_token()
    session.put(AUTH_USER_KEY, user_id)
    logger.info("User %s logged in", user_id)
    return RedirectResponse("/snippet/create", status_code=303)


# ── Logout ────────────────────────────────────────────────────────────────


@protected_router.post("/user/logout", summary="Log out")
async def user_logout_post(
    session: Session = Depends(get_session),
    auth: Authentication = Depends(get_authentication),
):
    session.renew_token()
    session.remove(AUTH_USER_KEY)
    put_flash(session, "You've been logged out successfully!")
    logger.info("User %s logged out", auth.user_id)
    return RedirectResponse("/", status_code=303)
