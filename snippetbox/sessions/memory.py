"""
Snippetbox — In-Memory Session Store
======================================

What:  SessionStore backed by a plain dict.
When:  SESSION_BACKEND=memory (single-process development) and unit tests.

Entries live as long as the process; restarts log everybody out.
Not shared between uvicorn workers.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Tuple

from snippetbox.sessions.base import SessionStore

logger = logging.getLogger(__name__)


class MemorySessionStore(SessionStore):

    def __init__(self):
        # token → (encoded data, expiry)
        self._items: Dict[str, Tuple[str, datetime]] = {}

    async def find(self, token: str) -> Optional[str]:
        item = self._items.get(token)
        if item is None:
            return None
        data, expiry = item
        if expiry <= datetime.now(timezone.utc):
            del self._items[token]
            return None
        return data

    async def commit(
        self,
        token: str,
        data: str,
        expiry: datetime,
        replaces: Iterable[str] = (),
    ) -> None:
        for old in replaces:
            self._items.pop(old, None)
        self._items[token] = (data, expiry)

    async def delete(self, token: str) -> None:
        self._items.pop(token, None)

    async def delete_expired(self) -> int:
        now = datetime.now(timezone.utc)
        expired = [token for token, (_, expiry) in self._items.items() if expiry <= now]
        for token in expired:
            del self._items[token]
        if expired:
            logger.debug("Purged %d expired sessions from memory", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._items)
