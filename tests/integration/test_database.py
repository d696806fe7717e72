"""Integration tests for session handling and the atomic unit of work."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import atomic, get_session
from inkwell.kernel.identity.identity_service import IdentityService
from inkwell.kernel.models.user import User


class TestAtomic:

    async def test_failure_rolls_back_whole_block(self, db_session, owner):
        identity = IdentityService(db_session)

        with pytest.raises(RuntimeError):
            async with atomic(db_session):
                db_session.add(User(username="ghost", email="ghost@example.com"))
                await db_session.flush()
                raise RuntimeError("second step failed")

        # Outer transaction is still usable
        assert await identity.get_user_by_username("ghost") is None
        assert (await identity.get_user_by_username(owner.username)).id == owner.id

    async def test_success_persists_on_commit(self, db_session):
        async with atomic(db_session):
            db_session.add(User(username="kept", email="kept@example.com"))

        await db_session.commit()
        assert await IdentityService(db_session).get_user_by_username("kept") is not None


class TestGetSession:

    async def test_yields_session_and_closes(self):
        sessions = get_session()
        session = await sessions.__anext__()
        assert isinstance(session, AsyncSession)
        with pytest.raises(StopAsyncIteration):
            await sessions.__anext__()

    async def test_error_propagates_after_rollback(self):
        sessions = get_session()
        await sessions.__anext__()
        with pytest.raises(RuntimeError):
            await sessions.athrow(RuntimeError("handler failed"))
