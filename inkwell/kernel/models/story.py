"""
Story model.
"""

import base64
import hashlib
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid
from inkwell.kernel.models.tag import story_tags

if TYPE_CHECKING:
    from inkwell.kernel.models.tag import Tag


class StoryAudience(str, Enum):
    """Who may read a published story."""
    ALL = "all"
    MEMBERS = "members"
    UNLISTED = "unlisted"


class StoryLicense(str, Enum):
    """License the author publishes the story under."""
    ALL_RIGHTS_RESERVED = "all_rights_reserved"
    PUBLIC_DOMAIN = "public_domain"


def generate_unique_hash(length: int = 16) -> str:
    """
    Generate the public slug of a story.

    SHA-512 of a random UUID, base32-encoded, truncated and lowercased.
    """
    digest = hashlib.sha512(str(uuid.uuid4()).encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii")[:length].lower()


class Story(Base, TimestampMixin):
    """A piece of writing by one author, optionally in a publication."""
    
    __tablename__ = "stories"
    
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
    publication_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("publications.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    
    # Content is structured (blocks + metadata), not plaintext
    content: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    unique_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    audience: Mapped[StoryAudience] = mapped_column(
        String(50),
        default=StoryAudience.ALL,
        nullable=False,
    )
    license: Mapped[StoryLicense] = mapped_column(
        String(50),
        default=StoryLicense.ALL_RIGHTS_RESERVED,
        nullable=False,
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary=story_tags,
        lazy="selectin",
    )
    
    def __repr__(self) -> str:
        return f"<Story {self.unique_hash}>"
