"""
Snippetbox — Flash Messages
=============================

What:  One-shot notifications ("Snippet successfully created!") carried in the
       session from the request that sets them to the next page render.
How:   A single string under a well-known key. Putting overwrites any unread
       message; popping reads and deletes in one session operation, so each
       message reaches at most one render. A message nobody pops is lost
       when the session expires.
"""

from typing import Optional

from snippetbox.sessions.manager import Session

FLASH_KEY = "flash"


def put_flash(session: Session, message: str) -> None:
    session.put(FLASH_KEY, message)


def pop_flash(session: Session) -> Optional[str]:
    message = session.pop(FLASH_KEY)
    return message if isinstance(message, str) else None
