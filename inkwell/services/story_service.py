"""
Story service - story lookup, visibility and publication association rules.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.config import get_settings
from inkwell.database import atomic
from inkwell.errors import NotFoundError, PermissionDeniedError, from_integrity_error
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.models.event_log import EventType
from inkwell.kernel.models.story import Story, StoryAudience, generate_unique_hash
from inkwell.kernel.models.user import User
from inkwell.kernel.permissions.permission_service import (
    STORY_WRITER_ROLES,
    PublicationPermissionService,
)
from inkwell.logging_config import get_logger
from inkwell.schemas.story import StoryCreate, StoryUpdate
from inkwell.services.tag_service import TagService

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_published(story: Story, now: Optional[datetime] = None) -> bool:
    """True once the story has a publication date that is not in the future."""
    if story.published_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _as_utc(story.published_at) <= now


class StoryService:
    """
    Service for stories.

    Writing a story into a publication requires a role that can write
    stories there; editing requires being the author or holding a role
    that can edit the publication's stories.
    """

    def __init__(self, session: AsyncSession, unique_hash_length: Optional[int] = None):
        self.session = session
        self.permissions = PublicationPermissionService(session)
        self.tags = TagService(session)
        self.event_store = EventStore(session)
        self.unique_hash_length = unique_hash_length or get_settings().story_unique_hash_length

    async def get_story(self, story_id: uuid.UUID) -> Optional[Story]:
        return await self.session.get(Story, story_id)

    async def get_story_or_raise(self, story_id: uuid.UUID) -> Story:
        story = await self.get_story(story_id)
        if story is None:
            raise NotFoundError("Story", story_id)
        return story

    async def get_story_by_unique_hash(self, unique_hash: str) -> Optional[Story]:
        query = select(Story).where(Story.unique_hash == unique_hash)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def can_see_story(self, story: Story, user: Optional[User]) -> bool:
        """
        Return True if the user may read the story.

        - The author always can.
        - Unpublished stories are visible to publication staff who can
          edit stories, and nobody else.
        - `all` and `unlisted` stories are visible to everyone.
        - `members` stories are visible to members of the story's publication.
        """
        if user is not None and story.author_id == user.id:
            return True

        if not is_published(story):
            if user is None or story.publication_id is None:
                return False
            return await self.permissions.can_edit_stories(story.publication_id, user.id)

        if StoryAudience(story.audience) != StoryAudience.MEMBERS:
            return True

        if user is None or story.publication_id is None:
            return False
        return await self.permissions.is_member(story.publication_id, user.id)

    async def can_edit_story(self, story: Story, user_id: uuid.UUID) -> bool:
        if story.author_id == user_id:
            return True
        if story.publication_id is None:
            return False
        return await self.permissions.can_edit_stories(story.publication_id, user_id)

    async def create_story(self, author_id: uuid.UUID, attrs: StoryCreate) -> Story:
        """
        Create a story, generating its public unique hash.

        Raises:
            PermissionDeniedError: The author cannot write into the publication
            ValidationFailedError: Unknown author or publication
        """
        if attrs.publication_id is not None:
            await self.permissions.require_role(
                attrs.publication_id, author_id, STORY_WRITER_ROLES, "write stories",
            )

        try:
            async with atomic(self.session):
                resolved_tags = await self.tags.insert_and_get_all_tags(attrs.tags or [])
                story = Story(
                    author_id=author_id,
                    publication_id=attrs.publication_id,
                    content=attrs.content,
                    audience=attrs.audience,
                    license=attrs.license,
                    published_at=attrs.published_at,
                    unique_hash=generate_unique_hash(self.unique_hash_length),
                    tags=resolved_tags,
                )
                self.session.add(story)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.STORY_CREATED,
                    entity_type="story",
                    entity_id=story.id,
                    user_id=author_id,
                    payload={
                        "publication_id": story.publication_id,
                        "unique_hash": story.unique_hash,
                        "audience": story.audience,
                    },
                )
        except IntegrityError as exc:
            raise from_integrity_error(exc, "Could not create story", author_id=author_id) from exc

        logger.info(
            "Story created",
            extra={"story_id": str(story.id), "author_id": str(author_id)},
        )
        return story

    async def update_story(self, story: Story, editor_id: uuid.UUID, attrs: StoryUpdate) -> Story:
        """
        Update a story. Its unique hash never changes.

        Moving the story into another publication also requires being able
        to write stories there.

        Raises:
            PermissionDeniedError: The editor may not edit this story
            ValidationFailedError: Unknown publication
        """
        if not await self.can_edit_story(story, editor_id):
            raise PermissionDeniedError(
                "Not allowed to edit this story",
                details={"story_id": str(story.id)},
            )

        story_id = story.id
        changes = attrs.model_dump(exclude_unset=True, exclude={"tags"})
        target_publication = changes.get("publication_id")
        if target_publication is not None and target_publication != story.publication_id:
            await self.permissions.require_role(
                target_publication, editor_id, STORY_WRITER_ROLES, "write stories",
            )

        try:
            async with atomic(self.session):
                if attrs.tags is not None:
                    resolved_tags = await self.tags.insert_and_get_all_tags(attrs.tags)
                    await self.session.refresh(story, attribute_names=["tags"])
                    story.tags = resolved_tags
                for field, value in changes.items():
                    setattr(story, field, value)

                await self.event_store.log(
                    event_type=EventType.STORY_UPDATED,
                    entity_type="story",
                    entity_id=story_id,
                    user_id=editor_id,
                    payload={"fields": sorted(changes)},
                )
        except IntegrityError as exc:
            raise from_integrity_error(exc, "Could not update story", story_id=story_id) from exc

        logger.info("Story updated", extra={"story_id": str(story_id), "editor_id": str(editor_id)})
        return story
