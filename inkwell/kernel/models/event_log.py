"""
Immutable event log for audit trail.

Every mutation writes its event inside the same transaction as the change,
so a rolled-back unit of work leaves no audit record behind.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, func, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.kernel.models.base import Base, generate_uuid


class EventType(str, Enum):
    """All event types for the audit log."""
    
    # User events
    USER_REGISTERED = "user.registered"
    USER_DEACTIVATED = "user.deactivated"
    USER_REACTIVATED = "user.reactivated"
    
    # Publication events
    PUBLICATION_CREATED = "publication.created"
    PUBLICATION_UPDATED = "publication.updated"
    MEMBERSHIP_CREATED = "publication.membership_created"
    MEMBERSHIP_DELETED = "publication.membership_deleted"
    MEMBER_KICKED = "publication.member_kicked"
    INVITATION_SENT = "publication.invitation_sent"
    INVITATION_ACCEPTED = "publication.invitation_accepted"
    INVITATION_REJECTED = "publication.invitation_rejected"
    
    # Story events
    STORY_CREATED = "story.created"
    STORY_UPDATED = "story.updated"
    
    # Comment events
    COMMENT_ADDED = "comment.added"
    COMMENT_EDITED = "comment.edited"
    COMMENT_DELETED = "comment.deleted"
    
    # Star events
    STAR_ADDED = "star.added"
    STAR_REMOVED = "star.removed"


class EventLog(Base):
    """
    Immutable audit event log.
    
    This table is append-only - no updates or deletes allowed.
    """
    
    __tablename__ = "event_logs"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    
    # Event identification
    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    
    # Entity reference
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    
    # Actor
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,  # System events may not have a user
        index=True,
    )
    
    # Event data
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    request_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    
    # Timestamp (immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    
    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_user_time", "user_id", "created_at"),
    )
    
    def __repr__(self) -> str:
        return f"<EventLog {self.event_type} {self.entity_type}:{self.entity_id}>"
