"""Pydantic schemas for projects and membership."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from bugtracker.db.enums import ProjectStatus
from bugtracker.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    """Request to create a project. The requester becomes the owner."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE
    team_member_ids: list[UUID] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """
    Request to update a project (partial).

    team_member_ids, when provided, replaces the team; the owner is kept.
    """
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    team_member_ids: list[UUID] | None = None


class MemberChange(BaseModel):
    """Body for add-member / remove-member."""
    user_id: UUID


class ProjectRef(BaseModel):
    """Project id and title embedded in other resources."""
    id: UUID
    title: str

    model_config = {"from_attributes": True}


class ProjectRead(BaseModel):
    """Project with owner and team hydrated."""
    id: UUID
    title: str
    description: str
    status: ProjectStatus
    owner: UserSummary | None
    team_members: list[UserSummary]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
