"""
Snippetbox — User Service Tests
=================================

What we test:
    ✅ insert hashes with bcrypt and returns the new id
    ✅ Duplicate email → DuplicateEmailError; other failures → DatabaseError
    ✅ authenticate: correct password → id; wrong password and unknown email
       raise the same InvalidCredentialsError
    ✅ Passwords over 72 bytes never authenticate
    ✅ exists() for present, absent and failing lookups
"""

from unittest.mock import MagicMock

import bcrypt
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from snippetbox.config import Settings
from snippetbox.database import Base, create_engine, create_sessionmaker
from snippetbox.exceptions import DatabaseError, DuplicateEmailError, InvalidCredentialsError
from snippetbox.models import User
from snippetbox.services.user_service import UserService


@pytest_asyncio.fixture
async def db():
    engine = create_engine(Settings(database_url="sqlite+aiosqlite://", log_level="WARNING"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with create_sessionmaker(engine)() as session:
        yield session
    await engine.dispose()


class TestUserServiceInsert:

    def setup_method(self):
        self.service = UserService(bcrypt_cost=4)

    @pytest.mark.asyncio
    async def test_insert_stores_bcrypt_hash(self, db):
        user_id = await self.service.insert(db, "Alice", "alice@example.com", "pa$$word123")

        stored = (await db.execute(select(User).where(User.id == user_id))).scalar_one()
        assert stored.email == "alice@example.com"
        assert stored.hashed_password != "pa$$word123"
        assert len(stored.hashed_password) == 60
        assert bcrypt.checkpw(b"pa$$word123", stored.hashed_password.encode("ascii"))

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db):
        await self.service.insert(db, "Alice", "alice@example.com", "pa$$word123")
        await db.commit()

        with pytest.raises(DuplicateEmailError) as exc_info:
            await self.service.insert(db, "Other", "alice@example.com", "different123")

        assert exc_info.value.message == "Email address is already in use"

    @pytest.mark.asyncio
    async def test_other_failures_are_database_errors(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(DatabaseError):
            await self.service.insert(mock_db_session, "Alice", "alice@example.com", "pa$$word123")


@pytest_asyncio.fixture
async def user_id(db):
    user_id = await UserService(bcrypt_cost=4).insert(db, "Alice", "alice@example.com", "pa$$word123")
    await db.commit()
    return user_id


class TestUserServiceAuthenticate:

    def setup_method(self):
        self.service = UserService(bcrypt_cost=4)

    @pytest.mark.asyncio
    async def test_correct_password(self, db, user_id):
        assert await self.service.authenticate(db, "alice@example.com", "pa$$word123") == user_id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db, user_id):
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await self.service.authenticate(db, "alice@example.com", "wrong-password")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await self.service.authenticate(db, "nobody@example.com", "pa$$word123")

        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.message == "Email or password is incorrect"

    @pytest.mark.asyncio
    async def test_unknown_email_still_checks_a_hash(self, db):
        self.service._check_password = MagicMock(return_value=False)

        with pytest.raises(InvalidCredentialsError):
            await self.service.authenticate(db, "nobody@example.com", "pa$$word123")

        self.service._check_password.assert_called_once()

    @pytest.mark.asyncio
    async def test_overlong_password_never_matches(self, db):
        password = "x" * 72
        await self.service.insert(db, "Long", "long@example.com", password)
        await db.commit()

        with pytest.raises(InvalidCredentialsError):
            await self.service.authenticate(db, "long@example.com", password + "y")
        assert await self.service.authenticate(db, "long@example.com", password)


class TestUserServiceExists:

    def setup_method(self):
        self.service = UserService(bcrypt_cost=4)

    @pytest.mark.asyncio
    async def test_exists(self, db):
        user_id = await self.service.insert(db, "Alice", "alice@example.com", "pa$$word123")
        assert await self.service.exists(db, user_id)
        assert not await self.service.exists(db, user_id + 1)

    @pytest.mark.asyncio
    async def test_lookup_failure_is_database_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await self.service.exists(mock_db_session, 1)
