"""
Snippetbox — Session Store SQLAlchemy Model
=============================================

What:  ORM model for the `sessions` table backing SQLSessionStore.

Table Design:
    - token: opaque URL-safe random string (43 chars for 32 bytes), primary key
    - data: JSON document holding the session deadline and values
    - expiry: UTC deadline, indexed so the periodic purge is a range delete
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class SessionRecord(Base):
    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)

    data: Mapped[str] = mapped_column(Text, nullable=False)

    expiry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_expiry", "expiry"),
    )

    def __repr__(self) -> str:
        return f"<SessionRecord(expiry='{self.expiry}')>"
