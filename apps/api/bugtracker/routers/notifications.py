"""
Notifications Router - /notifications endpoints.

Provides the caller's inbox, read status, and manual notification creation.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db, get_realtime_hub
from bugtracker.core.realtime import RealtimeHub
from bugtracker.db.models import User
from bugtracker.schemas.notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationRead,
)
from bugtracker.services import notification_service


router = APIRouter()


def _to_reads(db: Session, notifications) -> list[NotificationRead]:
    context = notification_service.get_notification_context(db, notifications)
    return [notification_service.to_notification_read(n, context) for n in notifications]


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the caller's notifications, newest first."""
    return _to_reads(db, notification_service.get_notifications(db, user.id))


@router.post("/", response_model=NotificationRead, status_code=201)
def create_notification(
    data: NotificationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
):
    notification = notification_service.create_from_request(db, hub, data, user)
    return _to_reads(db, [notification])[0]


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark all of the caller's notifications as read."""
    count = notification_service.mark_all_read(db, user.id)
    return MarkAllReadResponse(message="All notifications marked as read", updated=count)


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a single notification as read (recipient only)."""
    notification = notification_service.mark_read(db, notification_id, user)
    return _to_reads(db, [notification])[0]
