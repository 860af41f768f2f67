"""Pydantic schemas for ticket comments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bugtracker.schemas.user import UserSummary


class CommentCreate(BaseModel):
    ticket_id: UUID
    text: str = Field(..., min_length=1, max_length=10000)


class CommentRead(BaseModel):
    id: UUID
    ticket_id: UUID
    text: str
    user: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
