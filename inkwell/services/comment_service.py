"""
Comment service - comments, replies, visibility and counts.
"""

import uuid
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import atomic
from inkwell.errors import NotFoundError, ValidationFailedError, from_integrity_error
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.models.comment import Comment
from inkwell.kernel.models.event_log import EventType
from inkwell.kernel.models.story import Story
from inkwell.kernel.models.user import User
from inkwell.logging_config import get_logger
from inkwell.schemas.comment import CommentCreate, CommentUpdate
from inkwell.services.story_service import StoryService

logger = get_logger(__name__)


class CommentService:
    """Service for comments on stories and replies to comments."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.stories = StoryService(session)
        self.event_store = EventStore(session)

    async def get_comment(self, comment_id: uuid.UUID) -> Optional[Comment]:
        return await self.session.get(Comment, comment_id)

    async def get_comment_or_raise(self, comment_id: uuid.UUID) -> Comment:
        comment = await self.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def get_story(self, comment: Comment) -> Optional[Story]:
        """The root story of the comment, replies included."""
        return await self.session.get(Story, comment.story_id)

    async def get_author(self, comment: Comment) -> Optional[User]:
        return await self.session.get(User, comment.author_id)

    async def get_parent(self, comment: Comment) -> Optional[Comment]:
        if comment.parent_id is None:
            return None
        return await self.session.get(Comment, comment.parent_id)

    async def get_comment_count(
        self,
        *,
        story: Optional[Story] = None,
        comment: Optional[Comment] = None,
    ) -> int:
        """
        Count the comments shown for a story or a comment.

        With story=, counts its top-level comments; with comment=, its
        direct replies. Comments by deactivated authors are never counted.
        """
        if (story is None) == (comment is None):
            raise ValidationFailedError("Pass exactly one of story= or comment=")

        query = select(func.count(Comment.id)).join(
            User, User.id == Comment.author_id
        ).where(User.active_clause())

        if story is not None:
            query = query.where(Comment.story_id == story.id, Comment.parent_id.is_(None))
        else:
            query = query.where(Comment.parent_id == comment.id)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def can_see_comment(self, comment: Comment, user: Optional[User]) -> bool:
        """A comment is visible exactly when its root story is."""
        story = await self.get_story(comment)
        if story is None:
            return False
        return await self.stories.can_see_story(story, user)

    async def insert_comment(self, author_id: uuid.UUID, attrs: CommentCreate) -> Comment:
        """
        Add a comment to a story, or a reply to a comment.

        Replies take their root story from the parent.

        Raises:
            NotFoundError: Unknown story or parent comment
            ValidationFailedError: Parent belongs to another story, or unknown author
        """
        story_id = attrs.story_id
        if attrs.parent_id is not None:
            parent = await self.get_comment_or_raise(attrs.parent_id)
            if story_id is not None and story_id != parent.story_id:
                raise ValidationFailedError(
                    "Reply must belong to the same story as its parent",
                    details={"story_id": str(story_id), "parent_id": str(parent.id)},
                )
            story_id = parent.story_id
        elif story_id is None:
            raise ValidationFailedError("A comment needs a story or a parent comment")
        else:
            await self.stories.get_story_or_raise(story_id)

        try:
            async with atomic(self.session):
                comment = Comment(
                    author_id=author_id,
                    story_id=story_id,
                    parent_id=attrs.parent_id,
                    content=attrs.content,
                )
                self.session.add(comment)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.COMMENT_ADDED,
                    entity_type="comment",
                    entity_id=comment.id,
                    user_id=author_id,
                    payload={"story_id": story_id, "parent_id": attrs.parent_id},
                )
        except IntegrityError as exc:
            raise from_integrity_error(exc, "Could not add comment", story_id=story_id) from exc

        logger.info(
            "Comment added",
            extra={"comment_id": str(comment.id), "story_id": str(story_id)},
        )
        return comment

    async def update_comment(
        self,
        comment: Comment,
        attrs: CommentUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Comment:
        async with atomic(self.session):
            comment.content = attrs.content
            await self.event_store.log(
                event_type=EventType.COMMENT_EDITED,
                entity_type="comment",
                entity_id=comment.id,
                user_id=actor_id or comment.author_id,
                payload={"story_id": comment.story_id},
            )
        logger.info("Comment edited", extra={"comment_id": str(comment.id)})
        return comment

    async def delete_comment(
        self,
        comment: Comment,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Comment:
        """Delete a comment; its replies go with it."""
        async with atomic(self.session):
            await self.session.delete(comment)
            await self.event_store.log(
                event_type=EventType.COMMENT_DELETED,
                entity_type="comment",
                entity_id=comment.id,
                user_id=actor_id or comment.author_id,
                payload={"story_id": comment.story_id, "parent_id": comment.parent_id},
            )
        logger.info("Comment deleted", extra={"comment_id": str(comment.id)})
        return comment
