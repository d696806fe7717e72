"""
Pydantic schemas for validated command input.
"""

from inkwell.schemas.publication import PublicationCreate, PublicationUpdate
from inkwell.schemas.story import StoryCreate, StoryUpdate
from inkwell.schemas.comment import CommentCreate, CommentUpdate

__all__ = [
    "PublicationCreate",
    "PublicationUpdate",
    "StoryCreate",
    "StoryUpdate",
    "CommentCreate",
    "CommentUpdate",
]
