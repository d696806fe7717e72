"""
Publication schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class PublicationCreate(BaseModel):
    """Publication creation request."""
    
    name: str = Field(..., min_length=1, max_length=64)
    display_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    tags: Optional[List[str]] = None


class PublicationUpdate(BaseModel):
    """Publication update request. Unset fields are left unchanged."""
    
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    display_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    tags: Optional[List[str]] = None
