"""
Permission Core - publication role checks.
"""

from inkwell.kernel.permissions.permission_service import (
    ADMIN_ROLES,
    EDITOR_ROLES,
    INVITATION_VIEWER_ROLES,
    MEMBER_ROLES,
    OWNER_ROLES,
    PUBLICATION_UPDATER_ROLES,
    STORY_EDITOR_ROLES,
    STORY_WRITER_ROLES,
    PublicationPermissionService,
    check_role,
    role_allows,
)

__all__ = [
    "ADMIN_ROLES",
    "EDITOR_ROLES",
    "INVITATION_VIEWER_ROLES",
    "MEMBER_ROLES",
    "OWNER_ROLES",
    "PUBLICATION_UPDATER_ROLES",
    "STORY_EDITOR_ROLES",
    "STORY_WRITER_ROLES",
    "PublicationPermissionService",
    "check_role",
    "role_allows",
]
