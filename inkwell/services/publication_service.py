"""
Publication service - publications, memberships and the invitation workflow.

Invitation lifecycle:
    pending -> accepted (terminal)
    pending -> rejected (terminal)

Accepting an invitation is one unit of work: the invitation is accepted,
every other pending invitation to the same invitee is rejected, and the
membership row is inserted. The unique (publication, member) constraint on
memberships is the only serialization point between racing writers; the
loser gets a ConflictError and nothing it wrote persists.
"""

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import select, and_, func, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import atomic
from inkwell.errors import (
    ConflictError,
    InvariantViolationError,
    NotFoundError,
    ValidationFailedError,
    from_integrity_error,
    from_operational_error,
)
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.models.event_log import EventType
from inkwell.kernel.models.publication import (
    InvitationStatus,
    Publication,
    PublicationInvitation,
    PublicationMembership,
    PublicationRole,
)
from inkwell.kernel.models.story import Story
from inkwell.kernel.models.user import User
from inkwell.kernel.permissions.permission_service import PublicationPermissionService
from inkwell.logging_config import get_logger
from inkwell.schemas.publication import PublicationCreate, PublicationUpdate
from inkwell.services.tag_service import TagService

logger = get_logger(__name__)


class PublicationService:
    """
    Service for publications and their membership workflows.

    Usage:
        service = PublicationService(session)
        publication = await service.create_publication(owner.id, PublicationCreate(name="daily"))
        invitation = await service.invite_member(publication.id, writer.id, PublicationRole.WRITER)
        membership = await service.accept_invitation(invitation)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.permissions = PublicationPermissionService(session)
        self.tags = TagService(session)
        self.event_store = EventStore(session)

    # Publications

    async def get_publication(self, publication_id: uuid.UUID) -> Optional[Publication]:
        return await self.session.get(Publication, publication_id)

    async def get_publication_or_raise(self, publication_id: uuid.UUID) -> Publication:
        publication = await self.get_publication(publication_id)
        if publication is None:
            raise NotFoundError("Publication", publication_id)
        return publication

    async def get_publication_by_name(self, name: str) -> Optional[Publication]:
        query = select(Publication).where(Publication.name == name)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_member_count(self, publication_id: uuid.UUID) -> int:
        query = select(func.count(PublicationMembership.id)).where(
            PublicationMembership.publication_id == publication_id
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_story_count(self, publication_id: uuid.UUID) -> int:
        query = select(func.count(Story.id)).where(Story.publication_id == publication_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_publication_owner(self, publication_id: uuid.UUID) -> Optional[User]:
        query = select(User).join(
            PublicationMembership, PublicationMembership.member_id == User.id
        ).where(
            and_(
                PublicationMembership.publication_id == publication_id,
                PublicationMembership.role == PublicationRole.OWNER.value,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create_publication(
        self,
        owner_id: uuid.UUID,
        attrs: PublicationCreate,
        tags: Optional[Sequence[str]] = None,
    ) -> Publication:
        """
        Create a publication with its owner membership.

        Tags, the publication row and the owner membership are written as
        one unit; if any step fails none of them persist.

        Args:
            owner_id: User who becomes the sole owner
            attrs: Validated publication fields
            tags: Tag titles; overrides attrs.tags when given

        Raises:
            ValidationFailedError: Duplicate name or unknown owner
        """
        tag_titles = tags if tags is not None else attrs.tags

        try:
            async with atomic(self.session):
                resolved_tags = await self.tags.insert_and_get_all_tags(tag_titles or [])
                publication = Publication(
                    name=attrs.name,
                    display_name=attrs.display_name,
                    description=attrs.description,
                    tags=resolved_tags,
                )
                self.session.add(publication)
                await self.session.flush()

                owner = PublicationMembership(
                    publication_id=publication.id,
                    member_id=owner_id,
                    role=PublicationRole.OWNER,
                )
                self.session.add(owner)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.PUBLICATION_CREATED,
                    entity_type="publication",
                    entity_id=publication.id,
                    user_id=owner_id,
                    payload={"name": publication.name, "tags": [t.title for t in resolved_tags]},
                )
        except IntegrityError as exc:
            logger.warning(
                "Publication creation rolled back",
                extra={"publication_name": attrs.name, "owner_id": str(owner_id)},
            )
            raise from_integrity_error(
                exc, "Could not create publication", name=attrs.name,
            ) from exc

        logger.info(
            "Publication created",
            extra={"publication_id": str(publication.id), "owner_id": str(owner_id)},
        )
        return publication

    async def update_publication(
        self,
        publication: Publication,
        attrs: PublicationUpdate,
        tags: Optional[Sequence[str]] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Publication:
        """
        Update publication fields and, when given, replace its tags.

        Raises:
            ValidationFailedError: The new name is taken
        """
        changes = attrs.model_dump(exclude_unset=True, exclude={"tags"})
        tag_titles = tags if tags is not None else attrs.tags
        # Read before the unit: a rolled-back savepoint expires the instance
        publication_id = publication.id

        try:
            async with atomic(self.session):
                if tag_titles is not None:
                    resolved_tags = await self.tags.insert_and_get_all_tags(tag_titles)
                    await self.session.refresh(publication, attribute_names=["tags"])
                    publication.tags = resolved_tags
                    changes["tags"] = [t.title for t in resolved_tags]
                for field, value in changes.items():
                    if field != "tags":
                        setattr(publication, field, value)

                await self.event_store.log(
                    event_type=EventType.PUBLICATION_UPDATED,
                    entity_type="publication",
                    entity_id=publication_id,
                    user_id=actor_id,
                    payload={"changed": changes},
                )
        except IntegrityError as exc:
            raise from_integrity_error(
                exc, "Could not update publication", publication_id=publication_id,
            ) from exc

        logger.info("Publication updated", extra={"publication_id": str(publication_id)})
        return publication

    # Memberships

    async def get_membership(self, membership_id: uuid.UUID) -> Optional[PublicationMembership]:
        return await self.session.get(PublicationMembership, membership_id)

    async def get_membership_by_publication_and_member(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> Optional[PublicationMembership]:
        query = select(PublicationMembership).where(
            and_(
                PublicationMembership.publication_id == publication_id,
                PublicationMembership.member_id == member_id,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_members(self, publication_id: uuid.UUID) -> List[PublicationMembership]:
        query = select(PublicationMembership).where(
            PublicationMembership.publication_id == publication_id
        ).order_by(PublicationMembership.created_at)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def insert_membership(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
        role: PublicationRole,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PublicationMembership:
        """
        Grant a role directly, without an invitation.

        Raises:
            ConflictError: The user is already a member
            ValidationFailedError: Unknown publication or user
        """
        role = PublicationRole(role)
        try:
            async with atomic(self.session):
                membership = PublicationMembership(
                    publication_id=publication_id,
                    member_id=member_id,
                    role=role,
                )
                self.session.add(membership)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.MEMBERSHIP_CREATED,
                    entity_type="publication_membership",
                    entity_id=membership.id,
                    user_id=actor_id,
                    payload={
                        "publication_id": publication_id,
                        "member_id": member_id,
                        "role": role,
                    },
                )
        except IntegrityError as exc:
            existing = await self.get_membership_by_publication_and_member(publication_id, member_id)
            error_cls = ConflictError if existing is not None else ValidationFailedError
            raise from_integrity_error(
                exc,
                "Could not create publication membership",
                error_cls,
                publication_id=publication_id,
                member_id=member_id,
            ) from exc

        logger.info(
            "Publication membership created",
            extra={"publication_id": str(publication_id), "member_id": str(member_id), "role": role.value},
        )
        return membership

    async def delete_membership(
        self,
        membership_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PublicationMembership:
        membership = await self.get_membership(membership_id)
        if membership is None:
            raise NotFoundError("PublicationMembership", membership_id)
        await self._delete_membership(membership, EventType.MEMBERSHIP_DELETED, actor_id)
        return membership

    async def kick_member(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PublicationMembership:
        """
        Remove a member from a publication.

        Raises:
            InvariantViolationError: The user is not a member
        """
        membership = await self.get_membership_by_publication_and_member(publication_id, member_id)
        if membership is None:
            raise InvariantViolationError(
                "User is not a member of the publication.",
                details={"publication_id": str(publication_id), "member_id": str(member_id)},
            )
        await self._delete_membership(membership, EventType.MEMBER_KICKED, actor_id)
        return membership

    async def _delete_membership(
        self,
        membership: PublicationMembership,
        event_type: EventType,
        actor_id: Optional[uuid.UUID],
    ) -> None:
        async with atomic(self.session):
            await self.session.delete(membership)
            await self.event_store.log(
                event_type=event_type,
                entity_type="publication_membership",
                entity_id=membership.id,
                user_id=actor_id,
                payload={
                    "publication_id": membership.publication_id,
                    "member_id": membership.member_id,
                    "role": membership.role,
                },
            )
        logger.info(
            "Publication membership deleted",
            extra={
                "publication_id": str(membership.publication_id),
                "member_id": str(membership.member_id),
            },
        )

    # Invitations

    async def get_invitation(self, invitation_id: uuid.UUID) -> Optional[PublicationInvitation]:
        """Get an invitation with its current status, never a cached one."""
        return await self.session.get(
            PublicationInvitation, invitation_id, populate_existing=True
        )

    async def get_invitation_or_raise(self, invitation_id: uuid.UUID) -> PublicationInvitation:
        invitation = await self.get_invitation(invitation_id)
        if invitation is None:
            raise NotFoundError("PublicationInvitation", invitation_id)
        return invitation

    async def list_pending_invitations(self, publication_id: uuid.UUID) -> List[PublicationInvitation]:
        """Pending invitations sent by a publication, oldest first."""
        query = select(PublicationInvitation).where(
            and_(
                PublicationInvitation.publication_id == publication_id,
                PublicationInvitation.status == InvitationStatus.PENDING.value,
            )
        ).order_by(PublicationInvitation.created_at).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_invitations_for_invitee(
        self,
        invitee_id: uuid.UUID,
        status: Optional[InvitationStatus] = None,
    ) -> List[PublicationInvitation]:
        query = select(PublicationInvitation).where(PublicationInvitation.invitee_id == invitee_id)
        if status is not None:
            query = query.where(PublicationInvitation.status == InvitationStatus(status).value)
        query = query.order_by(PublicationInvitation.created_at).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def invite_member(
        self,
        publication_id: uuid.UUID,
        invitee_id: uuid.UUID,
        role: PublicationRole,
        inviter_id: Optional[uuid.UUID] = None,
    ) -> PublicationInvitation:
        """
        Offer a role in a publication to a user.

        Existing members and users with a pending invitation to the same
        publication are turned away here rather than at acceptance time.

        Raises:
            ValidationFailedError: Owner role requested, or unknown publication/user
            ConflictError: Invitee is already a member or already invited
        """
        role = PublicationRole(role)
        if role == PublicationRole.OWNER:
            raise ValidationFailedError(
                "The owner role cannot be offered by invitation",
                details={"publication_id": str(publication_id), "role": role.value},
            )

        if await self.permissions.is_member(publication_id, invitee_id):
            raise ConflictError(
                "User is already a member of the publication.",
                details={"publication_id": str(publication_id), "invitee_id": str(invitee_id)},
            )

        pending = await self.session.execute(
            select(PublicationInvitation.id).where(
                and_(
                    PublicationInvitation.publication_id == publication_id,
                    PublicationInvitation.invitee_id == invitee_id,
                    PublicationInvitation.status == InvitationStatus.PENDING.value,
                )
            )
        )
        if pending.first() is not None:
            raise ConflictError(
                "User already has a pending invitation to the publication.",
                details={"publication_id": str(publication_id), "invitee_id": str(invitee_id)},
            )

        try:
            async with atomic(self.session):
                invitation = PublicationInvitation(
                    publication_id=publication_id,
                    invitee_id=invitee_id,
                    inviter_id=inviter_id,
                    role=role,
                    status=InvitationStatus.PENDING,
                )
                self.session.add(invitation)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.INVITATION_SENT,
                    entity_type="publication_invitation",
                    entity_id=invitation.id,
                    user_id=inviter_id,
                    payload={
                        "publication_id": publication_id,
                        "invitee_id": invitee_id,
                        "role": role,
                    },
                )
        except IntegrityError as exc:
            raise from_integrity_error(
                exc,
                "Could not create publication invitation",
                publication_id=publication_id,
                invitee_id=invitee_id,
            ) from exc

        logger.info(
            "Publication invitation sent",
            extra={
                "invitation_id": str(invitation.id),
                "publication_id": str(publication_id),
                "invitee_id": str(invitee_id),
            },
        )
        return invitation

    async def accept_invitation(self, invitation: PublicationInvitation) -> PublicationMembership:
        """
        Accept a pending invitation.

        In one unit of work:
        1. mark this invitation accepted (only if still pending),
        2. reject every other pending invitation to the same invitee,
        3. insert the membership for the invitee with the offered role.

        Returns:
            The new membership

        Raises:
            ConflictError: The invitation is no longer pending, the
                invitee became a member concurrently, or another writer
                committed first. Nothing is written and the invitation
                keeps its previous status.
        """
        invitation_id = invitation.id
        invitee_id = invitation.invitee_id

        try:
            async with atomic(self.session):
                await self._transition_invitation(invitation, InvitationStatus.ACCEPTED)

                rejected = await self.session.execute(
                    update(PublicationInvitation)
                    .where(
                        and_(
                            PublicationInvitation.invitee_id == invitation.invitee_id,
                            PublicationInvitation.id != invitation.id,
                            PublicationInvitation.status == InvitationStatus.PENDING.value,
                        )
                    )
                    .values(status=InvitationStatus.REJECTED.value)
                    .returning(PublicationInvitation.id)
                    .execution_options(synchronize_session=False)
                )
                rejected_ids = list(rejected.scalars().all())

                membership = PublicationMembership(
                    publication_id=invitation.publication_id,
                    member_id=invitation.invitee_id,
                    role=PublicationRole(invitation.role),
                )
                self.session.add(membership)
                await self.session.flush()

                await self.event_store.log(
                    event_type=EventType.INVITATION_ACCEPTED,
                    entity_type="publication_invitation",
                    entity_id=invitation.id,
                    user_id=invitation.invitee_id,
                    payload={
                        "publication_id": invitation.publication_id,
                        "membership_id": membership.id,
                        "role": membership.role,
                        "rejected_invitation_ids": rejected_ids,
                    },
                )
        except IntegrityError as exc:
            logger.warning(
                "Invitation acceptance lost membership race",
                extra={"invitation_id": str(invitation_id), "invitee_id": str(invitee_id)},
            )
            raise from_integrity_error(
                exc,
                "User is already a member of the publication.",
                ConflictError,
                invitation_id=invitation_id,
            ) from exc
        except OperationalError as exc:
            logger.warning(
                "Invitation acceptance lost write race",
                extra={"invitation_id": str(invitation_id), "invitee_id": str(invitee_id)},
            )
            raise from_operational_error(
                exc,
                "Invitation was changed concurrently.",
                invitation_id=invitation_id,
            ) from exc

        await self.session.refresh(invitation)
        logger.info(
            "Publication invitation accepted",
            extra={
                "invitation_id": str(invitation.id),
                "publication_id": str(invitation.publication_id),
                "rejected_count": len(rejected_ids),
            },
        )
        return membership

    async def reject_invitation(self, invitation: PublicationInvitation) -> PublicationInvitation:
        """
        Reject a pending invitation.

        Raises:
            ConflictError: The invitation is no longer pending, or another
                writer committed first
        """
        invitation_id = invitation.id

        try:
            async with atomic(self.session):
                await self._transition_invitation(invitation, InvitationStatus.REJECTED)
                await self.event_store.log(
                    event_type=EventType.INVITATION_REJECTED,
                    entity_type="publication_invitation",
                    entity_id=invitation_id,
                    user_id=invitation.invitee_id,
                    payload={"publication_id": invitation.publication_id},
                )
        except OperationalError as exc:
            raise from_operational_error(
                exc,
                "Invitation was changed concurrently.",
                invitation_id=invitation_id,
            ) from exc

        await self.session.refresh(invitation)
        logger.info("Publication invitation rejected", extra={"invitation_id": str(invitation.id)})
        return invitation

    async def _transition_invitation(
        self,
        invitation: PublicationInvitation,
        to_status: InvitationStatus,
    ) -> None:
        """Move an invitation out of pending; the WHERE clause is the precondition."""
        result = await self.session.execute(
            update(PublicationInvitation)
            .where(
                and_(
                    PublicationInvitation.id == invitation.id,
                    PublicationInvitation.status == InvitationStatus.PENDING.value,
                )
            )
            .values(status=to_status.value)
            .returning(PublicationInvitation.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            logger.warning(
                "Invalid invitation transition",
                extra={"invitation_id": str(invitation.id), "to_status": to_status.value},
            )
            raise ConflictError(
                f"Invitation is not pending and cannot be {to_status.value}",
                details={"invitation_id": str(invitation.id), "to_status": to_status.value},
            )
