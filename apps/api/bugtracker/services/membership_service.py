"""
Project membership checks.

Membership = owner or team member. Every ticket, report and (optionally)
comment operation is gated on it.
"""

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from bugtracker.core.errors import ForbiddenError, NotFoundError
from bugtracker.db.models import Project, User, project_members
from bugtracker.utils.normalization import parse_uuid


def is_member(db: Session, project_id: UUID | str | None, user_id: UUID | str | None) -> bool:
    """True iff the user owns the project or is on its team. Fails closed."""
    project_uuid = parse_uuid(project_id)
    user_uuid = parse_uuid(user_id)
    if project_uuid is None or user_uuid is None:
        return False

    project = db.get(Project, project_uuid)
    if project is None:
        return False
    if project.owner_id == user_uuid:
        return True

    row = db.execute(
        select(project_members.c.user_id).where(
            project_members.c.project_id == project_uuid,
            project_members.c.user_id == user_uuid,
        )
    ).first()
    return row is not None


def member_ids(project: Project) -> set[UUID]:
    """Owner plus team, deduplicated."""
    ids = {member.id for member in project.team_members}
    ids.add(project.owner_id)
    return ids


def ensure_owner_membership(db: Session, project: Project) -> None:
    """Re-add the owner to the team if a mutation dropped it."""
    if project.owner_id in {member.id for member in project.team_members}:
        return
    owner = project.owner or db.get(User, project.owner_id)
    project.team_members.append(owner)


def get_project_for_member(
    db: Session,
    project_id: UUID | str,
    user: User,
    forbidden_message: str = "Not authorized to access this project",
) -> Project:
    """
    Load a project the user belongs to.

    Raises:
        NotFoundError: Project absent or id malformed
        ForbiddenError: User is not a member
    """
    project_uuid = parse_uuid(project_id)
    project = db.get(Project, project_uuid) if project_uuid else None
    if project is None:
        raise NotFoundError("Project not found")
    if not is_member(db, project.id, user.id):
        raise ForbiddenError(forbidden_message)
    return project


def accessible_projects_query(user_id: UUID):
    """Select of projects the user owns or belongs to."""
    membership = select(project_members.c.project_id).where(
        project_members.c.user_id == user_id
    )
    return select(Project).where(
        or_(Project.owner_id == user_id, Project.id.in_(membership))
    )


def accessible_project_ids(db: Session, user_id: UUID) -> list[UUID]:
    projects = db.execute(accessible_projects_query(user_id)).scalars().all()
    return [project.id for project in projects]
