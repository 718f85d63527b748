"""
Snippetbox — SQL Session Store
================================

What:  SessionStore persisted in the `sessions` table.
How:   Each operation opens its own AsyncSession from the app's sessionmaker,
       so session I/O is independent of the handler's database transaction.
       commit() deletes rotated-away tokens and upserts the current one in a
       single transaction.
Who:   Default store (SESSION_BACKEND=database); also purged periodically by
       the cleanup task started in the lifespan handler.

Error Handling:
    SQLAlchemyError is logged and re-raised as DatabaseError, which the
    global handler turns into a generic 500.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.exceptions import DatabaseError
from snippetbox.models.session import SessionRecord
from snippetbox.sessions.base import SessionStore

logger = logging.getLogger(__name__)


class SQLSessionStore(SessionStore):
    """
    Session store on top of async SQLAlchemy.

    Query plans:
        find:            PK lookup on token, filtered by expiry
        commit:          DELETE ... WHERE token IN (...) + merge (upsert by PK)
        delete_expired:  range delete on idx_sessions_expiry
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find(self, token: str) -> Optional[str]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(SessionRecord.data).where(
                        SessionRecord.token == token,
                        SessionRecord.expiry > datetime.now(timezone.utc),
                    )
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Session store read failed: %s", str(e))
            raise DatabaseError(context={"operation": "session_find"}) from e

    async def commit(
        self,
        token: str,
        data: str,
        expiry: datetime,
        replaces: Iterable[str] = (),
    ) -> None:
        stale = [old for old in replaces if old != token]
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    if stale:
                        await db.execute(
                            delete(SessionRecord).where(SessionRecord.token.in_(stale))
                        )
                    await db.merge(SessionRecord(token=token, data=data, expiry=expiry))
        except SQLAlchemyError as e:
            logger.error("Session store write failed: %s", str(e))
            raise DatabaseError(context={"operation": "session_commit"}) from e

    async def delete(self, token: str) -> None:
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    await db.execute(delete(SessionRecord).where(SessionRecord.token == token))
        except SQLAlchemyError as e:
            logger.error("Session store delete failed: %s", str(e))
            raise DatabaseError(context={"operation": "session_delete"}) from e

    async def delete_expired(self) -> int:
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    result = await db.execute(
                        delete(SessionRecord).where(
                            SessionRecord.expiry <= datetime.now(timezone.utc)
                        )
                    )
        except SQLAlchemyError as e:
            logger.error("Session purge failed: %s", str(e))
            raise DatabaseError(context={"operation": "session_purge"}) from e

        purged = result.rowcount or 0
        if purged:
            logger.info("Purged %d expired sessions", purged)
        return purged
