"""
Snippetbox — Abstract Session Store Interface
===============================================

What:  Abstract base class defining the contract for session persistence.
How:   Concrete stores inherit from SessionStore and implement find(),
       commit(), delete() and delete_expired(). SessionManager only ever
       talks to this interface.
Who:   Called by SessionManager at the start and end of every request that
       goes through the dynamic middleware chain.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional


class SessionStore(ABC):
    """
    Abstract interface for token-keyed session persistence.

    Contract:
        - Tokens are opaque strings generated by SessionManager
        - Data is an already-encoded string; stores never interpret it
        - Expired entries are never returned by find()
        - Implementation-specific failures are raised as DatabaseError

    Implementations:
        - SQLSessionStore: `sessions` table through async SQLAlchemy (default)
        - MemorySessionStore: in-process dict for development and tests
    """

    @abstractmethod
    async def find(self, token: str) -> Optional[str]:
        """
        Return the encoded data stored under `token`.

        Returns:
            The stored string, or None when the token is unknown or expired.
        """
        ...

    @abstractmethod
    async def commit(
        self,
        token: str,
        data: str,
        expiry: datetime,
        replaces: Iterable[str] = (),
    ) -> None:
        """
        Write `data` under `token` and drop the tokens in `replaces`.

        What:    The single write SessionManager issues per request.
        How:     Insert-or-update of `token`; deletion of every token the
                 session was rotated away from. Both happen together.

        Args:
            token:    Current session token
            data:     Encoded session document
            expiry:   Absolute UTC deadline after which find() ignores the entry
            replaces: Previous tokens of this session that must stop working
        """
        ...

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Remove `token`; unknown tokens are ignored."""
        ...

    @abstractmethod
    async def delete_expired(self) -> int:
        """
        Purge every entry whose expiry has passed.

        Returns:
            Number of entries removed.
        """
        ...
