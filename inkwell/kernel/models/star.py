"""
Star model - a user's like on a story or a comment.
"""

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid


class Star(Base, TimestampMixin):
    """A star given by a user to exactly one story or comment."""
    
    __tablename__ = "stars"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    story_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    
    __table_args__ = (
        UniqueConstraint("user_id", "story_id", name="uq_stars_user_story"),
        UniqueConstraint("user_id", "comment_id", name="uq_stars_user_comment"),
        CheckConstraint(
            "(story_id IS NULL) <> (comment_id IS NULL)",
            name="ck_stars_one_starrable",
        ),
    )
    
    def __repr__(self) -> str:
        return f"<Star user={self.user_id} story={self.story_id} comment={self.comment_id}>"
