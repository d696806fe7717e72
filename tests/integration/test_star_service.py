"""Integration tests for stars on stories and comments."""

import pytest
import pytest_asyncio

from inkwell.errors import ValidationFailedError
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.identity.identity_service import IdentityService
from inkwell.kernel.models.event_log import EventType
from inkwell.schemas.comment import CommentCreate
from inkwell.schemas.story import StoryCreate
from inkwell.services.comment_service import CommentService
from inkwell.services.star_service import StarService
from inkwell.services.story_service import StoryService


@pytest_asyncio.fixture
async def stars(db_session) -> StarService:
    return StarService(db_session)


@pytest_asyncio.fixture
async def story(db_session, owner):
    created = await StoryService(db_session).create_story(owner.id, StoryCreate(content={}))
    await db_session.commit()
    return created


class TestStars:

    async def test_starring_is_idempotent(self, db_session, stars, story, invitee):
        first = await stars.star_story(invitee.id, story)
        await db_session.commit()
        second = await stars.star_story(invitee.id, story)
        await db_session.commit()

        assert first.id == second.id
        assert await stars.has_starred(invitee.id, story=story)
        assert await stars.get_star_count(story=story) == 1
        assert await EventStore(db_session).count_events(event_type=EventType.STAR_ADDED) == 1

    async def test_unstar(self, db_session, stars, story, invitee):
        await stars.star_story(invitee.id, story)
        await db_session.commit()

        assert await stars.unstar_story(invitee.id, story) is True
        await db_session.commit()
        assert await stars.unstar_story(invitee.id, story) is False
        assert await stars.get_star_count(story=story) == 0

    async def test_comment_stars_are_separate(self, db_session, stars, story, owner, invitee):
        comment = await CommentService(db_session).insert_comment(
            owner.id, CommentCreate(content={}, story_id=story.id),
        )
        await db_session.commit()

        await stars.star_comment(invitee.id, comment)
        await db_session.commit()

        assert await stars.get_star_count(comment=comment) == 1
        assert await stars.get_star_count(story=story) == 0
        assert not await stars.has_starred(invitee.id, story=story)

        assert await stars.unstar_comment(invitee.id, comment) is True
        await db_session.commit()
        assert await stars.get_star_count(comment=comment) == 0

    async def test_count_only_active_users(self, db_session, stars, story, owner, invitee):
        await stars.star_story(owner.id, story)
        await stars.star_story(invitee.id, story)
        await db_session.commit()

        await IdentityService(db_session).deactivate_user(invitee)
        await db_session.commit()

        assert await stars.get_star_count(story=story) == 1
        assert await stars.has_starred(invitee.id, story=story)

    async def test_target_is_required(self, stars, invitee):
        with pytest.raises(ValidationFailedError):
            await stars.get_star_count()
        with pytest.raises(ValidationFailedError):
            await stars.has_starred(invitee.id)
