"""
Snippetbox — Snippet SQLAlchemy Model
=======================================

What:  ORM model representing the `snippets` table.
Who:   Used by SnippetService for insert, single fetch and the latest list.

Table Design:
    - Integer primary key: appears in /snippet/view/{id}
    - title: VARCHAR(100), matching the form's 100-character limit
    - content: TEXT, no length limit
    - created / expires: UTC; expires = created + 1, 7 or 365 days, computed
      in Python so the insert is portable between PostgreSQL and SQLite
    - Index on created: the home page lists the ten newest snippets
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class Snippet(Base):
    """A shared piece of text that stops being visible after `expires`."""

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_snippets_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', expires='{self.expires}')>"
