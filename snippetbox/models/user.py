"""
Snippetbox — User SQLAlchemy Model
====================================

What:  ORM model representing the `users` table.
Who:   Used by UserService for signup, login and the per-request existence
       check performed by the authentication middleware.

Table Design:
    - Integer primary key: stored in the session as the authenticated user id
    - email: unique via the named constraint `users_uc_email`; UserService
      matches on that name to map violations to DuplicateEmailError
    - hashed_password: bcrypt output, always 60 characters
    - created: UTC with timezone
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created by signup with a bcrypt hash of the password
        2. Looked up by email at login, by id on every authenticated request
        3. Deletion is not exposed by the app; sessions that outlive a deleted
           account are downgraded to unauthenticated by the resolver
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    hashed_password: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        comment="bcrypt hash (salt and cost embedded)",
    )

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("email", name="users_uc_email"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
