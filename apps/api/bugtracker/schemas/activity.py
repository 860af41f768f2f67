"""Pydantic schemas for the activity feed."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from bugtracker.db.enums import ActivityTargetType
from bugtracker.schemas.project import ProjectRef
from bugtracker.schemas.user import UserSummary


class ActivityRead(BaseModel):
    id: UUID
    user: UserSummary | None = None
    action: str
    target_type: ActivityTargetType
    target_id: UUID
    target_name: str
    project: ProjectRef | None = None
    created_at: datetime
