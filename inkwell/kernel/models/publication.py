"""
Publication models - publications, memberships and invitations.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.kernel.models.base import Base, TimestampMixin, generate_uuid
from inkwell.kernel.models.tag import publication_tags

if TYPE_CHECKING:
    from inkwell.kernel.models.tag import Tag


class PublicationRole(str, Enum):
    """Role of a member within a publication."""
    OWNER = "owner"
    ADMIN = "admin"
    EDITOR = "editor"
    WRITER = "writer"


class InvitationStatus(str, Enum):
    """Lifecycle of a publication invitation. Accepted and rejected are terminal."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Publication(Base, TimestampMixin):
    """A named collection of stories run by its members."""
    
    __tablename__ = "publications"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary=publication_tags,
        lazy="selectin",
    )
    
    def __repr__(self) -> str:
        return f"<Publication {self.name}>"


class PublicationMembership(Base, TimestampMixin):
    """Durable grant of a role to a user within a publication."""
    
    __tablename__ = "publication_memberships"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    publication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("publications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[PublicationRole] = mapped_column(
        String(50),
        nullable=False,
    )
    
    __table_args__ = (
        UniqueConstraint("publication_id", "member_id", name="uq_publication_memberships_member"),
    )
    
    def __repr__(self) -> str:
        return f"<PublicationMembership publication={self.publication_id} member={self.member_id}>"


class PublicationInvitation(Base, TimestampMixin):
    """A pending offer of membership, lifecycle-tracked on its own."""
    
    __tablename__ = "publication_invitations"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    publication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("publications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invitee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    inviter_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    role: Mapped[PublicationRole] = mapped_column(
        String(50),
        nullable=False,
    )
    status: Mapped[InvitationStatus] = mapped_column(
        String(50),
        default=InvitationStatus.PENDING,
        nullable=False,
    )
    
    __table_args__ = (
        Index("ix_publication_invitations_invitee_status", "invitee_id", "status"),
    )
    
    def __repr__(self) -> str:
        return f"<PublicationInvitation {self.id} status={self.status}>"
