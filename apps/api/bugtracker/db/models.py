"""SQLAlchemy ORM models for users, projects, tickets and their collaboration records."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, ForeignKey, Index, String, Table, Text, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bugtracker.db.base import Base
from bugtracker.db.enums import (
    DEFAULT_PROJECT_STATUS, DEFAULT_ROLE, DEFAULT_TICKET_PRIORITY,
    DEFAULT_TICKET_STATUS, DEFAULT_TICKET_TYPE,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )


# =============================================================================
# Identity
# =============================================================================

class User(TimestampMixin, Base):
    """
    Application user.

    Email is stored normalized (lowercase) and is unique.
    Users are never deleted in-band.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_ROLE.value, nullable=False
    )


# =============================================================================
# Projects
# =============================================================================

project_members = Table(
    "project_members",
    Base.metadata,
    Column(
        "project_id",
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Project(TimestampMixin, Base):
    """
    A project owned by one user with a team of members.

    The owner is always part of team_members.
    """
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PROJECT_STATUS.value, nullable=False
    )

    # Relationships
    owner: Mapped["User"] = relationship(foreign_keys=[owner_id])
    team_members: Mapped[list["User"]] = relationship(
        secondary=project_members, order_by="User.name"
    )
    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# =============================================================================
# Tickets
# =============================================================================

class Ticket(TimestampMixin, Base):
    """
    A unit of work inside a project.

    project_id and reporter_id are fixed at creation.
    """
    __tablename__ = "tickets"
    __table_args__ = (
        Index("idx_tickets_project_status", "project_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_TICKET_STATUS.value, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_TICKET_PRIORITY.value, nullable=False
    )
    type: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_TICKET_TYPE.value, nullable=False
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    reporter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)
    # Ordered list of {"url": ..., "filename": ...}
    attachments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Relationships
    project: Mapped["Project"] = relationship(back_populates="tickets")
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Comment(TimestampMixin, Base):
    """Append-only discussion entry on a ticket."""
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="comments")


# =============================================================================
# Notifications & Activity
# =============================================================================

class Notification(TimestampMixin, Base):
    """
    In-app notification for a single recipient.

    Only is_read changes after creation. References to deleted tickets or
    projects are nulled; the notification itself is kept.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_recipient_unread", "recipient_id", "is_read"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_ticket_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="SET NULL"), nullable=True
    )
    related_project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Activity(TimestampMixin, Base):
    """
    Write-once audit entry.

    target_name is captured at write time so the entry stays readable after
    the target is renamed or deleted.
    """
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    target_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True
    )
