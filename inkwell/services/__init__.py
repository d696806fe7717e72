"""
Publishing services.

Each service takes the request-scoped AsyncSession it works in; the
caller owns the outer commit.
"""

from inkwell.services.tag_service import TagService
from inkwell.services.publication_service import PublicationService
from inkwell.services.story_service import StoryService
from inkwell.services.comment_service import CommentService
from inkwell.services.star_service import StarService

__all__ = [
    "TagService",
    "PublicationService",
    "StoryService",
    "CommentService",
    "StarService",
]
