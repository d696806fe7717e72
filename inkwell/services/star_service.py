"""
Star service - likes on stories and comments.
"""

import uuid
from typing import Optional

from sqlalchemy import select, and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import atomic
from inkwell.errors import ConflictError, ValidationFailedError, from_integrity_error
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.models.comment import Comment
from inkwell.kernel.models.event_log import EventType
from inkwell.kernel.models.star import Star
from inkwell.kernel.models.story import Story
from inkwell.kernel.models.user import User
from inkwell.logging_config import get_logger

logger = get_logger(__name__)


def _target_clause(story: Optional[Story], comment: Optional[Comment]):
    if (story is None) == (comment is None):
        raise ValidationFailedError("Pass exactly one of story= or comment=")
    if story is not None:
        return Star.story_id == story.id
    return Star.comment_id == comment.id


class StarService:
    """
    Service for stars.

    Starring is idempotent: starring twice keeps one star, unstarring
    something never starred is a no-op.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def get_star(
        self,
        user_id: uuid.UUID,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> Optional[Star]:
        query = select(Star).where(
            and_(Star.user_id == user_id, _target_clause(story, comment))
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def has_starred(
        self,
        user_id: uuid.UUID,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> bool:
        return await self.get_star(user_id, story=story, comment=comment) is not None

    async def get_star_count(
        self,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> int:
        """Count stars given by users that are still active."""
        query = select(func.count(Star.id)).join(
            User, User.id == Star.user_id
        ).where(
            and_(User.active_clause(), _target_clause(story, comment))
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def star_story(self, user_id: uuid.UUID, story: Story) -> Star:
        return await self._star(user_id, story=story)

    async def star_comment(self, user_id: uuid.UUID, comment: Comment) -> Star:
        return await self._star(user_id, comment=comment)

    async def unstar_story(self, user_id: uuid.UUID, story: Story) -> bool:
        return await self._unstar(user_id, story=story)

    async def unstar_comment(self, user_id: uuid.UUID, comment: Comment) -> bool:
        return await self._unstar(user_id, comment=comment)

    async def _star(
        self,
        user_id: uuid.UUID,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> Star:
        existing = await self.get_star(user_id, story=story, comment=comment)
        if existing is not None:
            return existing

        try:
            async with atomic(self.session):
                star = Star(
                    user_id=user_id,
                    story_id=story.id if story is not None else None,
                    comment_id=comment.id if comment is not None else None,
                )
                self.session.add(star)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.STAR_ADDED,
                    entity_type="star",
                    entity_id=star.id,
                    user_id=user_id,
                    payload={"story_id": star.story_id, "comment_id": star.comment_id},
                )
        except IntegrityError as exc:
            raise from_integrity_error(exc, "Could not add star", ConflictError, user_id=user_id) from exc

        logger.info("Star added", extra={"star_id": str(star.id), "user_id": str(user_id)})
        return star

    async def _unstar(
        self,
        user_id: uuid.UUID,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> bool:
        star = await self.get_star(user_id, story=story, comment=comment)
        if star is None:
            return False

        async with atomic(self.session):
            await self.session.delete(star)
            await self.event_store.log(
                event_type=EventType.STAR_REMOVED,
                entity_type="star",
                entity_id=star.id,
                user_id=user_id,
                payload={"story_id": star.story_id, "comment_id": star.comment_id},
            )
        logger.info("Star removed", extra={"star_id": str(star.id), "user_id": str(user_id)})
        return True
