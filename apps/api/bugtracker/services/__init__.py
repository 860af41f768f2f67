"""Service layer modules."""

from bugtracker.services import (
    activity_service,
    comment_service,
    membership_service,
    notification_service,
    project_service,
    report_service,
    ticket_service,
    user_service,
)

__all__ = [
    "activity_service",
    "comment_service",
    "membership_service",
    "notification_service",
    "project_service",
    "report_service",
    "ticket_service",
    "user_service",
]
