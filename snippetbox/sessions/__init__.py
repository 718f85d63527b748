# Sessions package init
"""
Snippetbox — Server-Side Sessions
===================================

What:  Session state keyed by an opaque cookie token, persisted in a store.

Module Inventory:
    - base.py:     SessionStore (abstract store contract)
    - memory.py:   MemorySessionStore (single-process dict)
    - sql.py:      SQLSessionStore (sessions table via async SQLAlchemy)
    - manager.py:  Session + SessionManager (load, rotate, save, cookie)
    - flash.py:    one-shot flash messages kept in the session

Concurrency:
    Two requests carrying the same token each load, mutate and save their own
    copy. The last save wins; there is no read-modify-write atomicity across
    a request.
"""

from snippetbox.sessions.base import SessionStore
from snippetbox.sessions.flash import pop_flash, put_flash
from snippetbox.sessions.manager import Session, SessionManager
from snippetbox.sessions.memory import MemorySessionStore
from snippetbox.sessions.sql import SQLSessionStore

__all__ = [
    "MemorySessionStore",
    "SQLSessionStore",
    "Session",
    "SessionManager",
    "SessionStore",
    "pop_flash",
    "put_flash",
]
