"""
System smoke test: a publication's life from creation to starred replies.

Runs every service against one temp-file SQLite database inside a bound
request context, then checks the audit trail carries the request ID.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from inkwell.__main__ import main
from inkwell.kernel.identity.identity_service import IdentityService
from inkwell.kernel.models.event_log import EventLog, EventType
from inkwell.kernel.models.publication import InvitationStatus, PublicationRole
from inkwell.kernel.models.story import StoryAudience
from inkwell.kernel.permissions.permission_service import PublicationPermissionService
from inkwell.logging_config import request_context
from inkwell.schemas.comment import CommentCreate
from inkwell.schemas.publication import PublicationCreate
from inkwell.schemas.story import StoryCreate
from inkwell.services import (
    CommentService,
    PublicationService,
    StarService,
    StoryService,
)


async def test_publication_lifecycle(session_maker):
    async with session_maker() as session:
        identity = IdentityService(session)
        publications = PublicationService(session)
        permissions = PublicationPermissionService(session)
        stories = StoryService(session)
        comments = CommentService(session)
        stars = StarService(session)

        with request_context("smoke-1"):
            owner = await identity.create_user("olive", "olive@example.com")
            admin = await identity.create_user("ada", "ada@example.com")
            writer = await identity.create_user("wren", "wren@example.com")
            reader = await identity.create_user("rex", "rex@example.com")
            await session.commit()

            publication = await publications.create_publication(
                owner.id, PublicationCreate(name="smoke-signals", tags=["fire"]),
            )
            await session.commit()

            invitation = await publications.invite_member(
                publication.id, admin.id, PublicationRole.ADMIN, inviter_id=owner.id,
            )
            await publications.accept_invitation(invitation)
            await session.commit()
            assert await permissions.can_see_invitations(publication.id, admin.id)

            invitation = await publications.invite_member(
                publication.id, writer.id, PublicationRole.WRITER, inviter_id=admin.id,
            )
            await publications.accept_invitation(invitation)
            await session.commit()
            assert invitation.status == InvitationStatus.ACCEPTED
            assert await publications.get_member_count(publication.id) == 3

            story = await stories.create_story(
                writer.id,
                StoryCreate(
                    content={"title": "Smoke"},
                    publication_id=publication.id,
                    audience=StoryAudience.MEMBERS,
                    published_at=datetime.now(timezone.utc) - timedelta(minutes=5),
                ),
            )
            await session.commit()
            assert await stories.can_see_story(story, admin)
            assert not await stories.can_see_story(story, reader)

            comment = await comments.insert_comment(
                admin.id, CommentCreate(content={"text": "Ship it"}, story_id=story.id),
            )
            reply = await comments.insert_comment(
                writer.id, CommentCreate(content={"text": "Shipped"}, parent_id=comment.id),
            )
            await stars.star_comment(writer.id, comment)
            await stars.star_story(admin.id, story)
            await session.commit()

            assert reply.story_id == story.id
            assert await comments.get_comment_count(story=story) == 1
            assert await comments.get_comment_count(comment=comment) == 1
            assert await stars.get_star_count(story=story) == 1

            await publications.kick_member(publication.id, writer.id, actor_id=owner.id)
            await session.commit()
            assert not await permissions.is_member(publication.id, writer.id)
            assert await comments.can_see_comment(reply, writer)
            assert not await comments.can_see_comment(reply, reader)

        result = await session.execute(select(EventLog))
        events = list(result.scalars().all())
        assert events
        assert {event.request_id for event in events} == {"smoke-1"}
        assert EventType.MEMBER_KICKED in {EventType(event.event_type) for event in events}


async def test_entry_point_initializes_database():
    await main()
