"""
Kernel Data Models

Core SQLAlchemy models for users, publications, stories and their
comments, stars and tags.
"""

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid
from inkwell.kernel.models.user import User
from inkwell.kernel.models.tag import Tag, publication_tags, story_tags
from inkwell.kernel.models.publication import (
    Publication,
    PublicationMembership,
    PublicationInvitation,
    PublicationRole,
    InvitationStatus,
)
from inkwell.kernel.models.story import (
    Story,
    StoryAudience,
    StoryLicense,
    generate_unique_hash,
)
from inkwell.kernel.models.comment import Comment
from inkwell.kernel.models.star import Star
from inkwell.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # User
    "User",
    # Tags
    "Tag",
    "publication_tags",
    "story_tags",
    # Publications
    "Publication",
    "PublicationMembership",
    "PublicationInvitation",
    "PublicationRole",
    "InvitationStatus",
    # Stories
    "Story",
    "StoryAudience",
    "StoryLicense",
    "generate_unique_hash",
    # Comments and stars
    "Comment",
    "Star",
    # Event Log
    "EventLog",
    "EventType",
]
