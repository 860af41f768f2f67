"""Pydantic schemas for tickets."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bugtracker.db.enums import TicketPriority, TicketStatus, TicketType
from bugtracker.schemas.user import UserSummary


class Attachment(BaseModel):
    url: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)


class TicketCreate(BaseModel):
    """Request to create a ticket."""
    project_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: TicketStatus = TicketStatus.TODO
    priority: TicketPriority = TicketPriority.MEDIUM
    type: TicketType = TicketType.BUG
    assignee_id: UUID | None = None
    due_date: datetime | None = None
    attachments: list[Attachment] = Field(default_factory=list)


class TicketUpdate(BaseModel):
    """
    Request to update a ticket (partial).

    Only fields present in the body are applied. An explicit null clears
    description, assignee_id and due_date; it is rejected for the rest.
    """
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    type: TicketType | None = None
    assignee_id: UUID | None = None
    due_date: datetime | None = None
    attachments: list[Attachment] | None = None


class TicketRead(BaseModel):
    """Ticket with assignee and reporter summaries."""
    id: UUID
    project_id: UUID
    title: str
    description: str | None
    status: TicketStatus
    priority: TicketPriority
    type: TicketType
    assignee_id: UUID | None
    assignee: UserSummary | None = None
    reporter_id: UUID
    reporter: UserSummary | None = None
    due_date: datetime | None
    attachments: list[Attachment]
    created_at: datetime
    updated_at: datetime
