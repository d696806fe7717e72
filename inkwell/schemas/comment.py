"""
Comment schemas.
"""

import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel


class CommentCreate(BaseModel):
    """
    Comment creation request.

    Set story_id for a top-level comment, parent_id for a reply; a reply
    inherits its story from the parent.
    """

    content: Dict[str, Any]
    story_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None


class CommentUpdate(BaseModel):
    """Comment update request."""

    content: Dict[str, Any]
