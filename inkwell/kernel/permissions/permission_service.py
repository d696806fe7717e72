"""
Permission service for publication role checks.

Roles are a closed set; every check is a set-membership test against a
fixed allowed set, and a user with no membership is never allowed.
"""

import uuid
from typing import AbstractSet, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.errors import PermissionDeniedError
from inkwell.kernel.models.publication import PublicationMembership, PublicationRole
from inkwell.logging_config import get_logger

logger = get_logger(__name__)


MEMBER_ROLES = frozenset({
    PublicationRole.OWNER,
    PublicationRole.ADMIN,
    PublicationRole.EDITOR,
    PublicationRole.WRITER,
})
EDITOR_ROLES = frozenset({PublicationRole.EDITOR})
ADMIN_ROLES = frozenset({PublicationRole.OWNER, PublicationRole.ADMIN})
OWNER_ROLES = frozenset({PublicationRole.OWNER})
STORY_WRITER_ROLES = MEMBER_ROLES
STORY_EDITOR_ROLES = frozenset({
    PublicationRole.OWNER,
    PublicationRole.ADMIN,
    PublicationRole.EDITOR,
})
INVITATION_VIEWER_ROLES = ADMIN_ROLES
PUBLICATION_UPDATER_ROLES = ADMIN_ROLES


def role_allows(
    role: Optional[PublicationRole],
    allowed_roles: AbstractSet[PublicationRole],
) -> bool:
    """True iff the role is present and in the allowed set."""
    if role is None:
        return False
    return PublicationRole(role) in allowed_roles


class PublicationPermissionService:
    """
    Service for checking publication roles.
    
    Pure reads against the current membership rows; no caching, so every
    check sees the latest committed (or session-pending) state.
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def role_for(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> Optional[PublicationRole]:
        """
        Get the role of a member of a publication.
        
        Returns None if the user is not a member.
        """
        query = select(PublicationMembership.role).where(
            and_(
                PublicationMembership.publication_id == publication_id,
                PublicationMembership.member_id == member_id,
            )
        )
        result = await self.session.execute(query)
        role = result.scalar_one_or_none()
        # Loaded as plain str from the String column
        return PublicationRole(role) if role is not None else None
    
    async def has_role(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
        allowed_roles: AbstractSet[PublicationRole],
    ) -> bool:
        role = await self.role_for(publication_id, member_id)
        return role_allows(role, allowed_roles)
    
    async def require_role(
        self,
        publication_id: uuid.UUID,
        member_id: uuid.UUID,
        allowed_roles: AbstractSet[PublicationRole],
        action: str,
    ) -> PublicationRole:
        """
        Return the member's role, or raise if it is not in the allowed set.
        
        Raises:
            PermissionDeniedError: If the user lacks an allowed role
        """
        role = await self.role_for(publication_id, member_id)
        if not role_allows(role, allowed_roles):
            logger.warning(
                "Publication permission denied",
                extra={
                    "publication_id": str(publication_id),
                    "user_id": str(member_id),
                    "action": action,
                },
            )
            raise PermissionDeniedError(
                f"Not allowed to {action} in this publication",
                details={"publication_id": str(publication_id), "action": action},
            )
        return role
    
    async def is_member(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, MEMBER_ROLES)
    
    async def is_editor(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, EDITOR_ROLES)
    
    async def is_admin(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Owners count as admins."""
        return await self.has_role(publication_id, user_id, ADMIN_ROLES)
    
    async def is_owner(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, OWNER_ROLES)
    
    async def can_write_stories(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, STORY_WRITER_ROLES)
    
    async def can_edit_stories(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, STORY_EDITOR_ROLES)
    
    async def can_see_invitations(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, INVITATION_VIEWER_ROLES)
    
    async def can_update_publication(self, publication_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.has_role(publication_id, user_id, PUBLICATION_UPDATER_ROLES)


# Convenience functions

async def check_role(
    session: AsyncSession,
    publication_id: uuid.UUID,
    user_id: uuid.UUID,
    allowed_roles: AbstractSet[PublicationRole],
) -> bool:
    """Check if user holds one of the allowed roles in a publication."""
    service = PublicationPermissionService(session)
    return await service.has_role(publication_id, user_id, allowed_roles)
