"""Initial schema - users, publications, stories, comments

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Tags table
    op.create_table(
        'tags',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(64), unique=True, nullable=False, index=True),
        *_timestamps(),
    )

    # Publications table
    op.create_table(
        'publications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'publication_tags',
        sa.Column('publication_id', sa.Uuid(), sa.ForeignKey('publications.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Uuid(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # Memberships: one row per (publication, member)
    op.create_table(
        'publication_memberships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('publication_id', sa.Uuid(), sa.ForeignKey('publications.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', sa.String(50), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('publication_id', 'member_id', name='uq_publication_memberships_member'),
    )

    # Invitations
    op.create_table(
        'publication_invitations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('publication_id', sa.Uuid(), sa.ForeignKey('publications.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('invitee_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('inviter_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        *_timestamps(),
    )
    op.create_index('ix_publication_invitations_invitee_status', 'publication_invitations', ['invitee_id', 'status'])

    # Stories table
    op.create_table(
        'stories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('publication_id', sa.Uuid(), sa.ForeignKey('publications.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('unique_hash', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('audience', sa.String(50), nullable=False, server_default='all'),
        sa.Column('license', sa.String(50), nullable=False, server_default='all_rights_reserved'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'story_tags',
        sa.Column('story_id', sa.Uuid(), sa.ForeignKey('stories.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Uuid(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # Comments table
    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('story_id', sa.Uuid(), sa.ForeignKey('stories.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('content', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    # Stars table
    op.create_table(
        'stars',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('story_id', sa.Uuid(), sa.ForeignKey('stories.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('comment_id', sa.Uuid(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True, index=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'story_id', name='uq_stars_user_story'),
        sa.UniqueConstraint('user_id', 'comment_id', name='uq_stars_user_comment'),
        sa.CheckConstraint('(story_id IS NULL) <> (comment_id IS NULL)', name='ck_stars_one_starrable'),
    )

    # Event logs table (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('request_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_event_logs_user_time', 'event_logs', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('event_logs')
    op.drop_table('stars')
    op.drop_table('comments')
    op.drop_table('story_tags')
    op.drop_table('stories')
    op.drop_table('publication_invitations')
    op.drop_table('publication_memberships')
    op.drop_table('publication_tags')
    op.drop_table('publications')
    op.drop_table('tags')
    op.drop_table('users')
