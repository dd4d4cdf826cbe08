"""Shared test fixtures — async SQLite in-memory DB + model factories."""

import itertools
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Import all models so metadata is populated
import fintrack.models  # noqa: F401
from fintrack.services import entities, members, users


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    event.listen(eng.sync_engine, "connect", _enable_foreign_keys)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def make_user(session):
    """Create users with unique emails: ``await make_user("Ann", last_name="Lee")``."""
    counter = itertools.count(1)

    async def _make(first_name: str = "User", **overrides):
        data = {
            "email": f"user{next(counter)}@fintrack.io",
            "first_name": first_name,
            **overrides,
        }
        return await users.create_user(session, data)

    return _make


@pytest.fixture
def make_entity(session):
    async def _make(owner, name: str = "Household", **overrides):
        create_tenant = overrides.pop("create_tenant", True)
        return await entities.create_entity(
            session, owner, {"name": name, **overrides}, create_tenant=create_tenant,
        )

    return _make


@pytest.fixture
def make_member(session):
    async def _make(entity, user, permission="read"):
        return await members.add_member(session, entity, user, permission)

    return _make
