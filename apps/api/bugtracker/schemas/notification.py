"""Pydantic schemas for in-app notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bugtracker.db.enums import NotificationType
from bugtracker.schemas.user import UserSummary


class NotificationCreate(BaseModel):
    """Request to create a notification. Sender defaults to the requester."""
    recipient_id: UUID
    sender_id: UUID | None = None
    type: NotificationType
    message: str = Field(..., min_length=1, max_length=2000)
    related_ticket_id: UUID | None = None
    related_project_id: UUID | None = None


class RelatedRef(BaseModel):
    id: UUID
    title: str


class NotificationRead(BaseModel):
    """Notification with sender, related ticket and related project hydrated."""
    id: UUID
    recipient_id: UUID
    sender: UserSummary | None = None
    type: NotificationType
    message: str
    related_ticket: RelatedRef | None = None
    related_project: RelatedRef | None = None
    is_read: bool
    created_at: datetime


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int
