"""Baseline migration - users, projects, tickets, comments, notifications, activities

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-18

Uses portable column types so the same revision runs on SQLite and PostgreSQL.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tracker tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        *_timestamps(),
    )

    # ==========================================================================
    # Projects & membership
    # ==========================================================================
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_projects_owner_id', 'projects', ['owner_id'])

    op.create_table(
        'project_members',
        sa.Column(
            'project_id', sa.Uuid(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True,
        ),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True,
        ),
    )

    # ==========================================================================
    # Tickets & comments
    # ==========================================================================
    op.create_table(
        'tickets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'project_id', sa.Uuid(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column(
            'assignee_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('reporter_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_tickets_project_status', 'tickets', ['project_id', 'status'])
    op.create_index('ix_tickets_assignee_id', 'tickets', ['assignee_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'ticket_id', sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_comments_ticket_id', 'comments', ['ticket_id'])

    # ==========================================================================
    # Notifications & activity
    # ==========================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'recipient_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'sender_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column(
            'related_ticket_id', sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column(
            'related_project_id', sa.Uuid(),
            sa.ForeignKey('projects.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        'idx_notifications_recipient_unread', 'notifications', ['recipient_id', 'is_read']
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('target_type', sa.String(20), nullable=False),
        sa.Column('target_id', sa.Uuid(), nullable=False),
        sa.Column('target_name', sa.String(255), nullable=False),
        sa.Column(
            'project_id', sa.Uuid(),
            sa.ForeignKey('projects.id', ondelete='SET NULL'), nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index('ix_activities_project_id', 'activities', ['project_id'])


def downgrade() -> None:
    """Drop all tracker tables."""
    op.drop_table('activities')
    op.drop_table('notifications')
    op.drop_table('comments')
    op.drop_table('tickets')
    op.drop_table('project_members')
    op.drop_table('projects')
    op.drop_table('users')
