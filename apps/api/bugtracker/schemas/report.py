"""Pydantic schemas for read-only reports."""

from uuid import UUID

from pydantic import BaseModel


class AssigneeCount(BaseModel):
    assignee_id: UUID
    name: str
    count: int


class ProjectCount(BaseModel):
    project_id: UUID
    name: str
    count: int


class ProjectReport(BaseModel):
    """Ticket breakdown for one project."""
    project_id: UUID
    total_tickets: int
    status_breakdown: dict[str, int]
    priority_breakdown: dict[str, int]
    type_breakdown: dict[str, int]
    assignee_breakdown: list[AssigneeCount]
    # Days, two decimals; "0.00" when nothing is done
    avg_resolution_time: str


class UserReport(BaseModel):
    """Workload of tickets assigned to one user."""
    user_id: UUID
    total_assigned: int
    status_breakdown: dict[str, int]
    priority_breakdown: dict[str, int]
    project_breakdown: list[ProjectCount]
