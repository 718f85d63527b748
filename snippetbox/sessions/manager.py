"""
Snippetbox — Session & Session Manager
========================================

What:  The per-request Session object and the SessionManager that loads it
       from a store, persists it and writes the session cookie.
How:   SessionMiddleware calls load() before the handler and save() +
       write_cookie() after it. Handlers mutate the Session in between.
Who:   SessionMiddleware, the CSRF guard, the authentication resolver,
       flash helpers and the user handlers (token rotation on login/logout).

Session Document (as stored):
    {"deadline": <unix timestamp>, "values": {...}}

Lifetime:
    The deadline is fixed when the session is created (default 12 hours)
    and survives token rotation. It is not extended by activity.
"""

import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional

from starlette.responses import Response

from snippetbox.sessions.base import SessionStore

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"

_MISSING = object()


def generate_token() -> str:
    """32 bytes from the OS CSPRNG, URL-safe base64 (43 characters)."""
    return secrets.token_urlsafe(32)


class Session:
    """
    Mutable key-value state for one request.

    State tracked besides the values:
        token:        current cookie token
        deadline:     absolute UTC expiry
        dirty:        True once anything changed; only dirty sessions are saved
        stale_tokens: tokens this session was rotated away from during the
                      request; the store deletes them on save

    Values must be JSON-serialisable.
    """

    def __init__(
        self,
        token: str,
        deadline: datetime,
        values: Optional[Dict[str, Any]] = None,
        is_new: bool = False,
    ):
        self.token = token
        self.deadline = deadline
        self.is_new = is_new
        self.dirty = False
        self.stale_tokens: List[str] = []
        self._values: Dict[str, Any] = dict(values or {})

    # ── Reads ─────────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def keys(self) -> Iterator[str]:
        return iter(sorted(self._values))

    # ── Writes ────────────────────────────────────────────────────────────

    def put(self, key: str, value: Any) -> None:
        self._values[key] = value
        self.dirty = True

    def pop(self, key: str, default: Any = None) -> Any:
        """Read and delete `key` in one step."""
        value = self._values.pop(key, _MISSING)
        if value is _MISSING:
            return default
        self.dirty = True
        return value

    def remove(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            self.dirty = True

    def renew_token(self) -> None:
        """
        Issue a new token for this session (fixation defense).

        The old token is queued for deletion and stops resolving once the
        session is saved. Values and deadline are kept.
        """
        self.stale_tokens.append(self.token)
        self.token = generate_token()
        self.dirty = True

    @property
    def rotated(self) -> bool:
        return bool(self.stale_tokens)

    def expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.deadline

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"<Session(keys={list(self.keys())}, dirty={self.dirty}, deadline='{self.deadline}')>"


class SessionManager:
    """
    Loads, persists and cookies sessions for the request pipeline.

    Configuration:
        store:           SessionStore implementation
        lifetime:        absolute lifetime of new sessions (default 12h)
        cookie_secure:   Secure attribute on the session cookie
        cookie_name:     defaults to "session"
    """

    def __init__(
        self,
        store: SessionStore,
        lifetime: timedelta = timedelta(hours=12),
        cookie_secure: bool = True,
        cookie_name: str = SESSION_COOKIE_NAME,
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_secure = cookie_secure
        self.cookie_name = cookie_name

    def new_session(self) -> Session:
        return Session(
            token=generate_token(),
            deadline=datetime.now(timezone.utc) + self.lifetime,
            is_new=True,
        )

    async def load(self, token: Optional[str]) -> Session:
        """
        Resolve `token` to a live session, or start a fresh one.

        A fresh session is returned when the token is missing, unknown to the
        store, undecodable, or past its deadline.
        """
        if not token:
            return self.new_session()

        raw = await self.store.find(token)
        if raw is None:
            return self.new_session()

        try:
            document = json.loads(raw)
            deadline = datetime.fromtimestamp(float(document["deadline"]), tz=timezone.utc)
            values = document.get("values", {})
            if not isinstance(values, dict):
                raise ValueError("session values must be an object")
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding undecodable session data: %s", str(e))
            return self.new_session()

        session = Session(token=token, deadline=deadline, values=values)
        if session.expired():
            return self.new_session()
        return session

    async def save(self, session: Session) -> bool:
        """
        Persist `session` if it changed.

        Returns:
            True when the session was written (the cookie must be sent).
        """
        if not session.dirty:
            return False

        document = json.dumps(
            {"deadline": session.deadline.timestamp(), "values": session.to_dict()},
            separators=(",", ":"),
        )
        await self.store.commit(
            session.token,
            document,
            session.deadline,
            replaces=session.stale_tokens,
        )
        if session.rotated:
            logger.debug("Session token rotated (%d stale tokens removed)", len(session.stale_tokens))
        session.stale_tokens = []
        session.dirty = False
        return True

    def write_cookie(self, session: Session, response: Response) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=session.token,
            expires=session.deadline,
            path="/",
            secure=self.cookie_secure,
            httponly=True,
            samesite="lax",
        )
