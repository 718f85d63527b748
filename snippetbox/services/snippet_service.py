"""
Snippetbox — Snippet Service
==============================

What:  Create and read snippets.
How:   Stateless; each method receives the request's AsyncSession (commit is
       handled by get_db_session). Expiry is computed in Python so the same
       statements run on PostgreSQL and SQLite.
Who:   Snippet route handlers.

Visibility:
    Expired snippets behave as if they did not exist: get() raises
    NotFoundError and latest() skips them.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.exceptions import DatabaseError, NotFoundError
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)

LATEST_LIMIT = 10


class SnippetService:

    async def insert(self, db: AsyncSession, title: str, content: str, expires_days: int) -> int:
        """
        Store a snippet visible for `expires_days` days.

        Returns:
            The new snippet id.
        """
        now = datetime.now(timezone.utc)
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires_days),
        )
        db.add(snippet)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error inserting snippet: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the snippet. Please try again.",
                context={"operation": "snippet_insert"},
            ) from e

        logger.info("Snippet %s created (expires in %d days)", snippet.id, expires_days)
        return snippet.id

    async def get(self, db: AsyncSession, snippet_id: int) -> Snippet:
        """
        Fetch one unexpired snippet.

        Raises:
            NotFoundError: unknown or expired id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            result = await db.execute(
                select(Snippet).where(
                    Snippet.id == snippet_id,
                    Snippet.expires > datetime.now(timezone.utc),
                )
            )
            snippet = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching snippet %s: %s", snippet_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the snippet. Please try again.",
                context={"snippet_id": snippet_id},
            ) from e

        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return snippet

    async def latest(self, db: AsyncSession, limit: int = LATEST_LIMIT) -> List[Snippet]:
        """The `limit` most recent unexpired snippets, newest first."""
        try:
            result = await db.execute(
                select(Snippet)
                .where(Snippet.expires > datetime.now(timezone.utc))
                .order_by(desc(Snippet.id))
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve snippets. Please try again.",
                context={"operation": "snippet_latest"},
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
# SnippetService holds no state
snippet_service = SnippetService()
