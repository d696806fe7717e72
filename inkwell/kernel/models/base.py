"""
Declarative base shared by users, publications, memberships, invitations,
stories, comments, stars and the event log.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, func, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for Inkwell's tables."""

    # uuid.UUID columns map to native UUID on Postgres and CHAR(32) on SQLite
    type_annotation_map = {
        uuid.UUID: Uuid(),
    }


class TimestampMixin:
    """
    Database-stamped created_at/updated_at.

    Member and invitation listings are ordered by created_at.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def generate_uuid() -> uuid.UUID:
    """Primary key default for Inkwell rows."""
    return uuid.uuid4()
