"""
Pytest fixtures for Inkwell tests.

Services run against a temp-file SQLite database so that separate
sessions (separate connections) see each other's commits.
"""

import os
from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Point the module-level engine at SQLite before anything imports it
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
from inkwell.config import get_settings
get_settings.cache_clear()

from inkwell.database import build_engine, build_session_maker, init_db
from inkwell.kernel.identity.identity_service import IdentityService
from inkwell.kernel.models.user import User
from inkwell.kernel.permissions.permission_service import PublicationPermissionService
from inkwell.schemas.publication import PublicationCreate
from inkwell.services.publication_service import PublicationService


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create a test database engine with all tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'inkwell_test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory creating committed users by username."""
    identity = IdentityService(db_session)

    async def _make(username: str) -> User:
        user = await identity.create_user(username=username, email=f"{username}@example.com")
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def owner(make_user) -> User:
    return await make_user("olive")


@pytest_asyncio.fixture
async def invitee(make_user) -> User:
    return await make_user("victor")


@pytest_asyncio.fixture
async def publications(db_session: AsyncSession) -> PublicationService:
    return PublicationService(db_session)


@pytest_asyncio.fixture
async def permissions(db_session: AsyncSession) -> PublicationPermissionService:
    return PublicationPermissionService(db_session)


@pytest_asyncio.fixture
async def publication(db_session: AsyncSession, publications: PublicationService, owner: User):
    """A committed publication owned by `owner`."""
    created = await publications.create_publication(
        owner.id, PublicationCreate(name="night-shift", display_name="Night Shift"),
    )
    await db_session.commit()
    return created
