"""Integration tests for story creation, editing and visibility."""

import string
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from inkwell.errors import PermissionDeniedError, ValidationFailedError
from inkwell.kernel.models.publication import PublicationRole
from inkwell.kernel.models.story import StoryAudience
from inkwell.schemas.publication import PublicationCreate
from inkwell.schemas.story import StoryCreate, StoryUpdate
from inkwell.services.story_service import StoryService

YESTERDAY = datetime.now(timezone.utc) - timedelta(days=1)
NEXT_WEEK = datetime.now(timezone.utc) + timedelta(days=7)


@pytest_asyncio.fixture
async def stories(db_session) -> StoryService:
    return StoryService(db_session)


@pytest_asyncio.fixture
async def crew(db_session, publications, publication, make_user):
    """An editor, a writer and an outsider around `publication`."""
    editor = await make_user("edna")
    writer = await make_user("wren")
    outsider = await make_user("otto")
    await publications.insert_membership(publication.id, editor.id, PublicationRole.EDITOR)
    await publications.insert_membership(publication.id, writer.id, PublicationRole.WRITER)
    await db_session.commit()
    return {"editor": editor, "writer": writer, "outsider": outsider}


async def _story(db_session, stories, author, **fields):
    story = await stories.create_story(author.id, StoryCreate(content={"blocks": []}, **fields))
    await db_session.commit()
    return story


class TestCreateStory:

    async def test_personal_story_gets_unique_hash(self, db_session, stories, owner):
        story = await _story(db_session, stories, owner, tags=["Essay"])

        assert story.publication_id is None
        assert len(story.unique_hash) == 16
        assert set(story.unique_hash) <= set(string.ascii_lowercase + "234567")
        assert [t.title for t in story.tags] == ["essay"]
        assert (await stories.get_story_by_unique_hash(story.unique_hash)).id == story.id

    async def test_hash_length_is_configurable(self, db_session, owner):
        story = await _story(db_session, StoryService(db_session, unique_hash_length=10), owner)
        assert len(story.unique_hash) == 10

    async def test_member_writes_into_publication(self, db_session, stories, publications, publication, crew):
        story = await _story(db_session, stories, crew["writer"], publication_id=publication.id)
        assert story.publication_id == publication.id
        assert await publications.get_story_count(publication.id) == 1

    async def test_outsider_cannot_write_into_publication(
        self, db_session, stories, publications, publication, crew
    ):
        with pytest.raises(PermissionDeniedError):
            await stories.create_story(
                crew["outsider"].id,
                StoryCreate(content={}, publication_id=publication.id),
            )
        assert await publications.get_story_count(publication.id) == 0

    async def test_unknown_author(self, stories):
        with pytest.raises(ValidationFailedError):
            await stories.create_story(uuid.uuid4(), StoryCreate(content={}))


class TestEditStory:

    async def test_who_can_edit(self, db_session, stories, publication, owner, crew):
        story = await _story(db_session, stories, crew["writer"], publication_id=publication.id)
        other = await _story(db_session, stories, crew["editor"], publication_id=publication.id)

        assert await stories.can_edit_story(story, crew["writer"].id)
        assert await stories.can_edit_story(story, crew["editor"].id)
        assert await stories.can_edit_story(story, owner.id)
        assert not await stories.can_edit_story(story, crew["outsider"].id)
        assert not await stories.can_edit_story(other, crew["writer"].id)

    async def test_personal_story_only_author_edits(self, db_session, stories, owner, crew):
        story = await _story(db_session, stories, crew["outsider"])
        assert await stories.can_edit_story(story, crew["outsider"].id)
        assert not await stories.can_edit_story(story, owner.id)

    async def test_editor_updates_keeping_hash(self, db_session, stories, publication, crew):
        story = await _story(db_session, stories, crew["writer"], publication_id=publication.id, tags=["draft"])
        unique_hash = story.unique_hash

        await stories.update_story(
            story,
            crew["editor"].id,
            StoryUpdate(content={"blocks": ["edited"]}, audience=StoryAudience.MEMBERS, tags=["final"]),
        )
        await db_session.commit()

        reloaded = await stories.get_story_or_raise(story.id)
        assert reloaded.content == {"blocks": ["edited"]}
        assert reloaded.audience == StoryAudience.MEMBERS
        assert reloaded.unique_hash == unique_hash
        assert [t.title for t in reloaded.tags] == ["final"]

    async def test_writer_cannot_update_others_story(self, db_session, stories, publication, crew):
        story = await _story(db_session, stories, crew["editor"], publication_id=publication.id)
        with pytest.raises(PermissionDeniedError):
            await stories.update_story(story, crew["writer"].id, StoryUpdate(content={}))

    async def test_constraint_violation_is_validation_error(self, db_session, stories, owner):
        story = await _story(db_session, stories, owner)

        with pytest.raises(ValidationFailedError):
            await stories.update_story(story, owner.id, StoryUpdate(audience=None))

        await db_session.refresh(story)
        assert story.audience == StoryAudience.ALL

    async def test_move_requires_writer_role_in_target(
        self, db_session, stories, publications, publication, crew
    ):
        story = await _story(db_session, stories, crew["editor"], publication_id=publication.id)
        elsewhere = await publications.create_publication(crew["outsider"].id, PublicationCreate(name="elsewhere"))
        await db_session.commit()

        with pytest.raises(PermissionDeniedError):
            await stories.update_story(story, crew["editor"].id, StoryUpdate(publication_id=elsewhere.id))

        await publications.insert_membership(elsewhere.id, crew["editor"].id, PublicationRole.WRITER)
        await stories.update_story(story, crew["editor"].id, StoryUpdate(publication_id=elsewhere.id))
        await db_session.commit()

        assert await publications.get_story_count(elsewhere.id) == 1
        assert await publications.get_story_count(publication.id) == 0


class TestVisibility:

    async def test_published_public_story(self, db_session, stories, publication, crew):
        story = await _story(
            db_session, stories, crew["writer"], publication_id=publication.id, published_at=YESTERDAY,
        )
        assert await stories.can_see_story(story, crew["outsider"])
        assert await stories.can_see_story(story, None)

    async def test_unlisted_story_is_readable_by_link(self, db_session, stories, crew):
        story = await _story(
            db_session, stories, crew["writer"], audience=StoryAudience.UNLISTED, published_at=YESTERDAY,
        )
        assert await stories.can_see_story(story, crew["outsider"])

    async def test_members_only_story(self, db_session, stories, publication, owner, crew):
        story = await _story(
            db_session, stories, crew["writer"],
            publication_id=publication.id, audience=StoryAudience.MEMBERS, published_at=YESTERDAY,
        )
        assert await stories.can_see_story(story, owner)
        assert await stories.can_see_story(story, crew["editor"])
        assert not await stories.can_see_story(story, crew["outsider"])
        assert not await stories.can_see_story(story, None)

    async def test_unpublished_story(self, db_session, stories, publication, owner, crew):
        story = await _story(
            db_session, stories, crew["writer"], publication_id=publication.id, published_at=NEXT_WEEK,
        )
        other_writer_story = await _story(
            db_session, stories, crew["editor"], publication_id=publication.id,
        )

        assert await stories.can_see_story(story, crew["writer"])
        assert await stories.can_see_story(story, crew["editor"])
        assert await stories.can_see_story(story, owner)
        assert not await stories.can_see_story(story, crew["outsider"])
        assert not await stories.can_see_story(story, None)
        assert not await stories.can_see_story(other_writer_story, crew["writer"])

    async def test_unpublished_personal_story_is_private(self, db_session, stories, owner, crew):
        story = await _story(db_session, stories, crew["writer"])
        assert await stories.can_see_story(story, crew["writer"])
        assert not await stories.can_see_story(story, owner)
