"""Activity logging service - append-only audit feed of state changes."""

from uuid import UUID

from sqlalchemy.orm import Session

from bugtracker.core import side_effects
from bugtracker.core.config import settings
from bugtracker.db.enums import ActivityTargetType
from bugtracker.db.models import Activity, Project, User
from bugtracker.schemas.activity import ActivityRead
from bugtracker.schemas.project import ProjectRef
from bugtracker.schemas.user import UserSummary


def _insert_activity(
    db: Session,
    user_id: UUID,
    action: str,
    target_type: ActivityTargetType,
    target_id: UUID,
    target_name: str,
    project_id: UUID | None,
) -> Activity:
    activity = Activity(
        user_id=user_id,
        action=action,
        target_type=target_type.value,
        target_id=target_id,
        target_name=target_name,
        project_id=project_id,
    )
    db.add(activity)
    db.commit()
    return activity


def log_activity(
    db: Session,
    user_id: UUID,
    action: str,
    target_type: ActivityTargetType,
    target_id: UUID,
    target_name: str,
    project_id: UUID | None = None,
) -> Activity | None:
    """
    Append an activity after the primary write has committed.

    Failures are captured by the error sink and never reach the caller.

    Args:
        db: Database session
        user_id: Actor
        action: Human-readable action text
        target_type: Kind of entity acted on
        target_id: Id of the entity acted on
        target_name: Display name captured now (survives renames/deletes)
        project_id: Project context, if any

    Returns:
        The created activity, or None if the write failed
    """
    return side_effects.dispatch(
        db,
        "activity",
        _insert_activity,
        db,
        user_id,
        action,
        target_type,
        target_id,
        target_name,
        project_id,
        context={"user_id": user_id, "project_id": project_id},
    )


def list_recent(db: Session, limit: int | None = None) -> list[Activity]:
    """Global feed, newest first."""
    limit = limit or settings.ACTIVITY_FEED_LIMIT
    return (
        db.query(Activity)
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )


def get_activity_context(db: Session, activities: list[Activity]) -> dict[str, dict]:
    """Fetch actors and project titles for activities in bulk."""
    user_ids = {a.user_id for a in activities}
    project_ids = {a.project_id for a in activities if a.project_id}

    users = {}
    if user_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}

    projects = {}
    if project_ids:
        projects = {
            p.id: p for p in db.query(Project).filter(Project.id.in_(project_ids)).all()
        }

    return {"users": users, "projects": projects}


def to_activity_read(activity: Activity, context: dict[str, dict]) -> ActivityRead:
    user = context["users"].get(activity.user_id)
    project = context["projects"].get(activity.project_id)
    return ActivityRead(
        id=activity.id,
        user=UserSummary.model_validate(user) if user else None,
        action=activity.action,
        target_type=ActivityTargetType(activity.target_type),
        target_id=activity.target_id,
        target_name=activity.target_name,
        project=ProjectRef.model_validate(project) if project else None,
        created_at=activity.created_at,
    )
