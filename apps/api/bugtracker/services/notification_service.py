"""
Notification service - durable in-app notifications plus real-time push.

Every logical event produces one Notification row per recipient and, when
the event belongs to a project, a best-effort "notification" push on the
project channel.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from bugtracker.core import side_effects
from bugtracker.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from bugtracker.core.realtime import EventName, RealtimeHub, project_channel
from bugtracker.db.enums import NotificationType
from bugtracker.db.models import Notification, Project, Ticket, User
from bugtracker.schemas.notification import NotificationCreate, NotificationRead, RelatedRef
from bugtracker.schemas.user import UserSummary
from bugtracker.utils.normalization import parse_uuid


def create_notification(
    db: Session,
    recipient_id: UUID,
    type: NotificationType,
    message: str,
    sender_id: UUID | None = None,
    related_ticket_id: UUID | None = None,
    related_project_id: UUID | None = None,
) -> Notification:
    """Persist one notification and commit."""
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type.value,
        message=message,
        related_ticket_id=related_ticket_id,
        related_project_id=related_project_id,
        is_read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def publish_notification(
    db: Session,
    hub: RealtimeHub,
    notification: Notification,
) -> None:
    """Push a notification to its project's channel, if it has one."""
    if notification.related_project_id is None:
        return
    context = get_notification_context(db, [notification])
    payload = to_notification_read(notification, context).model_dump(mode="json")
    hub.publish(
        project_channel(notification.related_project_id),
        EventName.NOTIFICATION,
        {"project_id": str(notification.related_project_id), "notification": payload},
    )


def _notify(
    db: Session,
    hub: RealtimeHub,
    recipient_id: UUID,
    type: NotificationType,
    message: str,
    sender_id: UUID | None,
    ticket: Ticket,
) -> Notification:
    notification = create_notification(
        db,
        recipient_id=recipient_id,
        type=type,
        message=message,
        sender_id=sender_id,
        related_ticket_id=ticket.id,
        related_project_id=ticket.project_id,
    )
    publish_notification(db, hub, notification)
    return notification


# =============================================================================
# Notification Triggers (called from ticket service after commit)
# =============================================================================


def notify_ticket_assigned(
    db: Session,
    hub: RealtimeHub,
    ticket: Ticket,
    assignee_id: UUID,
    actor_id: UUID,
) -> Notification | None:
    """Tell the assignee they were given a ticket. Never raises."""
    return side_effects.dispatch(
        db,
        "notification.ticket_assigned",
        _notify,
        db,
        hub,
        assignee_id,
        NotificationType.TICKET_ASSIGNED,
        f"You have been assigned to ticket: {ticket.title}",
        actor_id,
        ticket,
        context={"user_id": actor_id, "project_id": ticket.project_id},
    )


def notify_ticket_status_changed(
    db: Session,
    hub: RealtimeHub,
    ticket: Ticket,
    recipient_ids: set[UUID],
    actor_id: UUID,
) -> list[Notification]:
    """
    One TICKET_UPDATED notification per recipient. The actor is never notified.

    A failure for one recipient does not stop the others.
    """
    title = ticket.title
    status = ticket.status
    project_id = ticket.project_id
    message = f'Ticket "{title}" status changed to {status}'

    sent = []
    for recipient_id in sorted(recipient_ids - {actor_id}, key=str):
        notification = side_effects.dispatch(
            db,
            "notification.ticket_updated",
            _notify,
            db,
            hub,
            recipient_id,
            NotificationType.TICKET_UPDATED,
            message,
            actor_id,
            ticket,
            context={"user_id": actor_id, "project_id": project_id},
        )
        if notification is not None:
            sent.append(notification)
    return sent


# =============================================================================
# Inbox
# =============================================================================


def create_from_request(
    db: Session,
    hub: RealtimeHub,
    data: NotificationCreate,
    requester: User,
) -> Notification:
    """
    Create a notification on behalf of a user.

    Raises:
        InvalidInputError: Recipient (or explicit sender) does not exist
    """
    if db.get(User, data.recipient_id) is None:
        raise InvalidInputError("Recipient not found")
    sender_id = data.sender_id or requester.id
    if data.sender_id and db.get(User, data.sender_id) is None:
        raise InvalidInputError("Sender not found")
    if data.related_ticket_id and db.get(Ticket, data.related_ticket_id) is None:
        raise InvalidInputError("Related ticket not found")
    if data.related_project_id and db.get(Project, data.related_project_id) is None:
        raise InvalidInputError("Related project not found")

    notification = create_notification(
        db,
        recipient_id=data.recipient_id,
        type=data.type,
        message=data.message,
        sender_id=sender_id,
        related_ticket_id=data.related_ticket_id,
        related_project_id=data.related_project_id,
    )
    side_effects.dispatch(
        db,
        "realtime.notification",
        publish_notification,
        db,
        hub,
        notification,
        context={"user_id": requester.id, "project_id": data.related_project_id},
    )
    return notification


def get_notifications(db: Session, user_id: UUID) -> list[Notification]:
    """Get notifications for user, newest first."""
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .all()
    )


def mark_read(db: Session, notification_id: UUID | str, user: User) -> Notification:
    """
    Mark one notification as read.

    Raises:
        NotFoundError: Absent or malformed id
        ForbiddenError: Caller is not the recipient
    """
    notification_uuid = parse_uuid(notification_id)
    notification = db.get(Notification, notification_uuid) if notification_uuid else None
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.recipient_id != user.id:
        raise ForbiddenError("Not authorized")

    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    count = (
        db.query(Notification)
        .filter(
            Notification.recipient_id == user_id,
            Notification.is_read.is_(False),
        )
        .update({"is_read": True}, synchronize_session=False)
    )
    db.commit()
    return count


def get_notification_context(
    db: Session,
    notifications: list[Notification],
) -> dict[str, dict]:
    """Fetch senders, related tickets and related projects in bulk."""
    sender_ids = {n.sender_id for n in notifications if n.sender_id}
    ticket_ids = {n.related_ticket_id for n in notifications if n.related_ticket_id}
    project_ids = {n.related_project_id for n in notifications if n.related_project_id}

    senders = {}
    if sender_ids:
        senders = {u.id: u for u in db.query(User).filter(User.id.in_(sender_ids)).all()}

    ticket_titles = {}
    if ticket_ids:
        rows = db.query(Ticket.id, Ticket.title).filter(Ticket.id.in_(ticket_ids)).all()
        ticket_titles = {row.id: row.title for row in rows}

    project_titles = {}
    if project_ids:
        rows = db.query(Project.id, Project.title).filter(Project.id.in_(project_ids)).all()
        project_titles = {row.id: row.title for row in rows}

    return {
        "senders": senders,
        "ticket_titles": ticket_titles,
        "project_titles": project_titles,
    }


def to_notification_read(
    notification: Notification,
    context: dict[str, dict],
) -> NotificationRead:
    """Convert Notification model to NotificationRead schema."""
    sender = context["senders"].get(notification.sender_id)
    ticket_title = context["ticket_titles"].get(notification.related_ticket_id)
    project_title = context["project_titles"].get(notification.related_project_id)

    return NotificationRead(
        id=notification.id,
        recipient_id=notification.recipient_id,
        sender=UserSummary.model_validate(sender) if sender else None,
        type=NotificationType(notification.type),
        message=notification.message,
        related_ticket=(
            RelatedRef(id=notification.related_ticket_id, title=ticket_title)
            if ticket_title is not None
            else None
        ),
        related_project=(
            RelatedRef(id=notification.related_project_id, title=project_title)
            if project_title is not None
            else None
        ),
        is_read=notification.is_read,
        created_at=notification.created_at,
    )
