"""Project service - ownership, team membership and project CRUD."""

from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from bugtracker.core.errors import (
    AlreadyMemberError,
    ForbiddenError,
    InvalidInputError,
    InvalidOperationError,
    NotFoundError,
)
from bugtracker.db.enums import ActivityTargetType, ProjectStatus
from bugtracker.db.models import Project, User
from bugtracker.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from bugtracker.schemas.user import UserSummary
from bugtracker.services import activity_service, membership_service
from bugtracker.utils.normalization import parse_uuid


def _load_users(db: Session, user_ids: list[UUID]) -> list[User]:
    """
    Resolve ids to users, preserving first-seen order.

    Raises:
        InvalidInputError: Any id does not reference an existing user
    """
    unique_ids = list(dict.fromkeys(user_ids))
    if not unique_ids:
        return []
    users = db.query(User).filter(User.id.in_(unique_ids)).all()
    by_id = {user.id: user for user in users}
    missing = [str(uid) for uid in unique_ids if uid not in by_id]
    if missing:
        raise InvalidInputError(f"Team member(s) not found: {', '.join(missing)}")
    return [by_id[uid] for uid in unique_ids]


def _get_project(db: Session, project_id: UUID | str) -> Project:
    project_uuid = parse_uuid(project_id)
    project = db.get(Project, project_uuid) if project_uuid else None
    if project is None:
        raise NotFoundError("Project not found")
    return project


def _require_owner(project: Project, user: User, message: str) -> None:
    if project.owner_id != user.id:
        raise ForbiddenError(message)


def create_project(db: Session, owner: User, data: ProjectCreate) -> Project:
    """
    Create a project owned by the requester.

    The owner is always part of the team, whatever team_member_ids holds.

    Raises:
        InvalidInputError: Blank title or unknown team member
    """
    if not data.title.strip():
        raise InvalidInputError("title cannot be empty")

    team = _load_users(db, data.team_member_ids)

    project = Project(
        title=data.title.strip(),
        description=data.description or "",
        status=data.status.value,
        owner_id=owner.id,
    )
    project.owner = owner
    project.team_members = team
    membership_service.ensure_owner_membership(db, project)

    db.add(project)
    db.commit()
    db.refresh(project)

    activity_service.log_activity(
        db,
        user_id=owner.id,
        action="created project",
        target_type=ActivityTargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        project_id=project.id,
    )
    return project


def list_projects(db: Session, user: User) -> list[Project]:
    """Projects the user owns or belongs to, newest first."""
    query = (
        membership_service.accessible_projects_query(user.id)
        .options(selectinload(Project.owner), selectinload(Project.team_members))
        .order_by(Project.created_at.desc())
    )
    return list(db.execute(query).scalars().all())


def get_project(db: Session, project_id: UUID | str, user: User) -> Project:
    """
    Raises:
        NotFoundError: Project absent
        ForbiddenError: Not a member
    """
    return membership_service.get_project_for_member(
        db, project_id, user, forbidden_message="Not authorized to view this project"
    )


def update_project(
    db: Session,
    project_id: UUID | str,
    user: User,
    data: ProjectUpdate,
) -> Project:
    """
    Update a project (owner only).

    Title and status are only overwritten by non-empty values; description may
    be cleared. team_member_ids replaces the team and the owner is re-added.
    """
    project = _get_project(db, project_id)
    _require_owner(project, user, "Not authorized to update this project")

    update_data = data.model_dump(exclude_unset=True)

    if "team_member_ids" in update_data and data.team_member_ids is not None:
        project.team_members = _load_users(db, data.team_member_ids)

    title = update_data.get("title")
    if title and title.strip():
        project.title = title.strip()
    if "description" in update_data:
        project.description = update_data["description"] or ""
    if update_data.get("status"):
        project.status = ProjectStatus(update_data["status"]).value

    membership_service.ensure_owner_membership(db, project)
    db.commit()
    db.refresh(project)

    activity_service.log_activity(
        db,
        user_id=user.id,
        action="updated project",
        target_type=ActivityTargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        project_id=project.id,
    )
    return project


def delete_project(db: Session, project_id: UUID | str, user: User) -> None:
    """
    Delete a project with its memberships, tickets and their comments (owner only).

    Notifications and activities that reference it keep their rows; their
    project/ticket references are nulled by the store.
    """
    project = _get_project(db, project_id)
    _require_owner(project, user, "Not authorized to delete this project")

    deleted_id = project.id
    deleted_title = project.title
    db.delete(project)
    db.commit()

    activity_service.log_activity(
        db,
        user_id=user.id,
        action="deleted project",
        target_type=ActivityTargetType.PROJECT,
        target_id=deleted_id,
        target_name=deleted_title,
    )


def add_member(
    db: Session,
    project_id: UUID | str,
    user: User,
    member_id: UUID,
) -> Project:
    """
    Add a user to the team (owner only).

    Raises:
        NotFoundError: Project or user absent
        ForbiddenError: Requester is not the owner
        AlreadyMemberError: User already on the team
    """
    project = _get_project(db, project_id)
    _require_owner(project, user, "Not authorized to add members to this project")

    member = db.get(User, member_id)
    if member is None:
        raise NotFoundError("User to add not found")
    if member.id in membership_service.member_ids(project):
        raise AlreadyMemberError("User is already a team member")

    project.team_members.append(member)
    membership_service.ensure_owner_membership(db, project)
    db.commit()
    db.refresh(project)

    activity_service.log_activity(
        db,
        user_id=user.id,
        action=f"added {member.name} to the project",
        target_type=ActivityTargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        project_id=project.id,
    )
    return project


def remove_member(
    db: Session,
    project_id: UUID | str,
    user: User,
    member_id: UUID,
) -> Project:
    """
    Remove a user from the team (owner only).

    The owner can never be removed, whoever asks. Tickets assigned to the
    removed user keep their assignee.

    Raises:
        NotFoundError: Project absent, or user not on the team
        InvalidOperationError: Target is the owner
        ForbiddenError: Requester is not the owner
    """
    project = _get_project(db, project_id)
    if member_id == project.owner_id:
        raise InvalidOperationError("Cannot remove the project owner from team members")
    _require_owner(project, user, "Not authorized to remove members from this project")

    member = next((m for m in project.team_members if m.id == member_id), None)
    if member is None:
        raise NotFoundError("User not found in team members")

    project.team_members.remove(member)
    membership_service.ensure_owner_membership(db, project)
    db.commit()
    db.refresh(project)

    activity_service.log_activity(
        db,
        user_id=user.id,
        action=f"removed {member.name} from the project",
        target_type=ActivityTargetType.PROJECT,
        target_id=project.id,
        target_name=project.title,
        project_id=project.id,
    )
    return project


def to_project_read(project: Project) -> ProjectRead:
    """Convert Project model to ProjectRead schema with owner and team hydrated."""
    return ProjectRead(
        id=project.id,
        title=project.title,
        description=project.description,
        status=ProjectStatus(project.status),
        owner=UserSummary.model_validate(project.owner) if project.owner else None,
        team_members=[UserSummary.model_validate(m) for m in project.team_members],
        created_at=project.created_at,
        updated_at=project.updated_at,
    )
