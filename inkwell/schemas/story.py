"""
Story schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from inkwell.kernel.models.story import StoryAudience, StoryLicense


class StoryCreate(BaseModel):
    """Story creation request."""
    
    content: Dict[str, Any]
    audience: StoryAudience = StoryAudience.ALL
    license: StoryLicense = StoryLicense.ALL_RIGHTS_RESERVED
    publication_id: Optional[uuid.UUID] = None
    published_at: Optional[datetime] = None
    tags: Optional[List[str]] = None


class StoryUpdate(BaseModel):
    """Story update request. The unique hash is not updatable."""
    
    content: Optional[Dict[str, Any]] = None
    audience: Optional[StoryAudience] = None
    license: Optional[StoryLicense] = None
    publication_id: Optional[uuid.UUID] = None
    published_at: Optional[datetime] = None
    tags: Optional[List[str]] = None
