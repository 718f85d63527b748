"""
Snippetbox — User Service
===========================

What:  Account persistence and credential checks.
How:   bcrypt for hashing (fixed cost from Settings), async SQLAlchemy for
       storage. Methods receive the AsyncSession to use, like every service
       in this package.
Who:   Signup/login handlers, and the authentication middleware for the
       per-request existence check.

Operations:
    insert(db, name, email, password)   → new user id; DuplicateEmailError on taken email
    authenticate(db, email, password)   → user id; InvalidCredentialsError otherwise
    exists(db, user_id)                 → bool

Timing:
    authenticate() performs one bcrypt comparison whether or not the email is
    known: unknown emails are checked against a dummy hash of the same cost.
"""

import logging
from functools import cached_property

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
)
from snippetbox.models.user import User

logger = logging.getLogger(__name__)

# bcrypt ignores (older releases) or rejects (newer releases) input past 72 bytes
BCRYPT_MAX_PASSWORD_BYTES = 72


class UserService:
    """
    Business logic for accounts.

    Error Handling Strategy:
        Unique violations on `users_uc_email` become DuplicateEmailError;
        every other SQLAlchemy failure becomes DatabaseError (generic 500).
    """

    def __init__(self, bcrypt_cost: int = 12):
        self.bcrypt_cost = bcrypt_cost

    def hash_password(self, password: str) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_cost))
        return hashed.decode("ascii")

    @cached_property
    def _dummy_hash(self) -> bytes:
        return bcrypt.hashpw(b"snippetbox-dummy-password", bcrypt.gensalt(rounds=self.bcrypt_cost))

    def _check_password(self, password: str, hashed: bytes) -> bool:
        candidate = password.encode("utf-8")
        if len(candidate) > BCRYPT_MAX_PASSWORD_BYTES:
            # Still spend the comparison so long passwords take the normal time
            bcrypt.checkpw(candidate[:BCRYPT_MAX_PASSWORD_BYTES], hashed)
            return False
        return bcrypt.checkpw(candidate, hashed)

    async def insert(self, db: AsyncSession, name: str, email: str, password: str) -> int:
        """
        Create an account.

        Raises:
            DuplicateEmailError: email already registered (nothing is inserted)
            DatabaseError: any other persistence failure
        """
        # bcrypt is CPU-bound; keep it off the event loop
        hashed = await run_in_threadpool(self.hash_password, password)
        user = User(name=name, email=email, hashed_password=hashed)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            if "users_uc_email" in str(e.orig) or "users.email" in str(e.orig):
                logger.info("Signup rejected: email already in use")
                raise DuplicateEmailError(email=email) from e
            logger.error("Integrity error inserting user: %s", str(e))
            raise DatabaseError(context={"operation": "user_insert"}) from e
        except SQLAlchemyError as e:
            logger.error("Database error inserting user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "user_insert"}) from e

        logger.info("User %s created", user.id)
        return user.id

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> int:
        """
        Check credentials and return the user id.

        Raises:
            InvalidCredentialsError: unknown email or wrong password (same error)
            DatabaseError: lookup failed
        """
        try:
            result = await db.execute(
                select(User.id, User.hashed_password).where(User.email == email)
            )
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("Database error during login lookup: %s", str(e))
            raise DatabaseError(context={"operation": "user_authenticate"}) from e

        if row is None:
            await run_in_threadpool(self._check_password, password, self._dummy_hash)
            raise InvalidCredentialsError()

        stored = row.hashed_password.encode("ascii")
        if not await run_in_threadpool(self._check_password, password, stored):
            raise InvalidCredentialsError()

        return row.id

    async def exists(self, db: AsyncSession, user_id: int) -> bool:
        """
        True when a user with `user_id` is stored.

        Raises:
            DatabaseError: the lookup itself failed (not "not found")
        """
        try:
            result = await db.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error("Database error checking user %s: %s", user_id, str(e))
            raise DatabaseError(context={"operation": "user_exists", "user_id": user_id}) from e
