"""Activities router - global recent activity feed."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db
from bugtracker.db.models import User
from bugtracker.schemas.activity import ActivityRead
from bugtracker.services import activity_service


router = APIRouter()


@router.get("/", response_model=list[ActivityRead])
def list_activities(
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    activities = activity_service.list_recent(db)
    context = activity_service.get_activity_context(db, activities)
    return [activity_service.to_activity_read(a, context) for a in activities]
