"""
Comment model - top-level comments on stories and replies to comments.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid


class Comment(Base, TimestampMixin):
    """
    A comment on a story, or a reply to another comment.

    Replies keep the root story id as well as their parent id, so the
    story a comment belongs to is always one lookup away.
    """
    
    __tablename__ = "comments"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    story_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    content: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    
    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None
    
    def __repr__(self) -> str:
        return f"<Comment {self.id} by {self.author_id}>"
