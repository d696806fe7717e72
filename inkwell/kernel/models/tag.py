"""
Tag model and the association tables that attach tags to content.
"""

import uuid

from sqlalchemy import Column, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid


publication_tags = Table(
    "publication_tags",
    Base.metadata,
    Column("publication_id", Uuid(), ForeignKey("publications.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

story_tags = Table(
    "story_tags",
    Base.metadata,
    Column("story_id", Uuid(), ForeignKey("stories.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base, TimestampMixin):
    """A normalized topic label shared by stories and publications."""
    
    __tablename__ = "tags"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    
    def __repr__(self) -> str:
        return f"<Tag {self.title}>"
