"""
Ticket service - lifecycle of tickets inside projects.

Mutation order for create/update/delete:
    validate -> commit -> notifications -> realtime event -> activity (last)
Notification, event and activity failures never undo the committed ticket.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import false, or_
from sqlalchemy.orm import Session

from bugtracker.core import side_effects
from bugtracker.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from bugtracker.core.realtime import EventName, RealtimeHub, project_channel
from bugtracker.db.enums import (
    ActivityTargetType,
    TicketPriority,
    TicketStatus,
    TicketType,
)
from bugtracker.db.models import Project, Ticket, User
from bugtracker.schemas.ticket import TicketCreate, TicketRead, TicketUpdate
from bugtracker.schemas.user import UserSummary
from bugtracker.services import activity_service, membership_service, notification_service
from bugtracker.utils.normalization import escape_like_string, parse_uuid


# Fields an explicit null clears; null anywhere else is rejected
CLEARABLE_FIELDS = {"description", "assignee_id", "due_date"}


# =============================================================================
# Filters
# =============================================================================

@dataclass
class TicketFilter:
    """Optional list filters; only the provided ones constrain the query."""
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assignee: str | None = None
    search: str | None = None

    def predicates(self) -> list:
        """SQL predicates for the provided filters (empty list = match all)."""
        clauses = []
        if self.status:
            clauses.append(Ticket.status == self.status.value)
        if self.priority:
            clauses.append(Ticket.priority == self.priority.value)
        if self.assignee:
            assignee_id = parse_uuid(self.assignee)
            # Malformed id can never match
            clauses.append(
                Ticket.assignee_id == assignee_id if assignee_id else false()
            )
        if self.search and self.search.strip():
            pattern = f"%{escape_like_string(self.search.strip())}%"
            clauses.append(
                or_(
                    Ticket.title.ilike(pattern, escape="\\"),
                    Ticket.description.ilike(pattern, escape="\\"),
                )
            )
        return clauses


# =============================================================================
# Helpers
# =============================================================================

def _get_ticket(db: Session, ticket_id: UUID | str) -> Ticket:
    ticket_uuid = parse_uuid(ticket_id)
    ticket = db.get(Ticket, ticket_uuid) if ticket_uuid else None
    if ticket is None:
        raise NotFoundError("Ticket not found")
    return ticket


def _validate_assignee(db: Session, project_id: UUID, assignee_id: UUID) -> User:
    """
    Raises:
        InvalidInputError: Assignee absent or not a project member
    """
    assignee = db.get(User, assignee_id)
    if assignee is None:
        raise InvalidInputError("Assignee not found")
    if not membership_service.is_member(db, project_id, assignee_id):
        raise InvalidInputError("Assignee must be a member of the project")
    return assignee


def _publish(hub: RealtimeHub, project_id: UUID, event: str, payload: dict) -> None:
    hub.publish(project_channel(project_id), event, payload)


def _publish_ticket(
    db: Session,
    hub: RealtimeHub,
    ticket: Ticket,
    event: str,
    actor_id: UUID,
) -> None:
    def emit():
        payload = to_ticket_read(ticket, get_ticket_context(db, [ticket])).model_dump(
            mode="json"
        )
        _publish(hub, ticket.project_id, event, {
            "project_id": str(ticket.project_id),
            "ticket": payload,
        })

    side_effects.dispatch(
        db,
        f"realtime.{event}",
        emit,
        context={"user_id": actor_id, "project_id": ticket.project_id},
    )


# =============================================================================
# Mutations
# =============================================================================

def create_ticket(
    db: Session,
    hub: RealtimeHub,
    actor: User,
    data: TicketCreate,
) -> Ticket:
    """
    Create a ticket in a project the actor belongs to.

    Raises:
        NotFoundError: Project absent
        ForbiddenError: Actor is not a member
        InvalidInputError: Blank title, or assignee absent or not a member
    """
    project = membership_service.get_project_for_member(
        db,
        data.project_id,
        actor,
        forbidden_message="Not authorized to create tickets in this project",
    )
    if not data.title.strip():
        raise InvalidInputError("title cannot be empty")
    if data.assignee_id is not None:
        _validate_assignee(db, project.id, data.assignee_id)

    ticket = Ticket(
        project_id=project.id,
        title=data.title.strip(),
        description=data.description,
        status=data.status.value,
        priority=data.priority.value,
        type=data.type.value,
        assignee_id=data.assignee_id,
        reporter_id=actor.id,
        due_date=data.due_date,
        attachments=[a.model_dump() for a in data.attachments],
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    if ticket.assignee_id:
        notification_service.notify_ticket_assigned(
            db, hub, ticket, ticket.assignee_id, actor.id
        )
    _publish_ticket(db, hub, ticket, EventName.TICKET_CREATED, actor.id)
    activity_service.log_activity(
        db,
        user_id=actor.id,
        action=f'created ticket "{ticket.title}"',
        target_type=ActivityTargetType.TICKET,
        target_id=ticket.id,
        target_name=ticket.title,
        project_id=ticket.project_id,
    )
    return ticket


def update_ticket(
    db: Session,
    hub: RealtimeHub,
    actor: User,
    ticket_id: UUID | str,
    data: TicketUpdate,
) -> Ticket:
    """
    Partially update a ticket.

    Uses exclude_unset=True so only explicitly provided fields are updated.
    project_id and reporter_id are never touched.

    Raises:
        NotFoundError: Ticket absent
        ForbiddenError: Actor is not a project member
        InvalidInputError: null for a required field, or invalid assignee
    """
    ticket = _get_ticket(db, ticket_id)
    if not membership_service.is_member(db, ticket.project_id, actor.id):
        raise ForbiddenError("Not authorized to update this ticket")

    update_data = data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        if value is None and field not in CLEARABLE_FIELDS:
            raise InvalidInputError(f"{field} cannot be null")
        if field == "title" and not value.strip():
            raise InvalidInputError("title cannot be empty")

    new_assignee = None
    if update_data.get("assignee_id") is not None:
        new_assignee = _validate_assignee(db, ticket.project_id, update_data["assignee_id"])

    old_status = ticket.status
    old_assignee_id = ticket.assignee_id

    for field, value in update_data.items():
        if field in ("status", "priority", "type"):
            value = value.value if hasattr(value, "value") else value
        elif field == "title":
            value = value.strip()
        elif field == "attachments":
            value = [dict(a) for a in value]
        setattr(ticket, field, value)

    db.commit()
    db.refresh(ticket)

    status_changed = ticket.status != old_status
    assignee_changed = ticket.assignee_id != old_assignee_id

    if assignee_changed and ticket.assignee_id is not None:
        notification_service.notify_ticket_assigned(
            db, hub, ticket, ticket.assignee_id, actor.id
        )

    if status_changed:
        project = db.get(Project, ticket.project_id)
        recipients = membership_service.member_ids(project) if project else set()
        notification_service.notify_ticket_status_changed(
            db, hub, ticket, recipients, actor.id
        )

    _publish_ticket(db, hub, ticket, EventName.TICKET_UPDATED, actor.id)

    if status_changed:
        action = (
            f'changed status of ticket "{ticket.title}" '
            f'from "{old_status}" to "{ticket.status}"'
        )
    elif assignee_changed:
        assignee_name = new_assignee.name if new_assignee else "Unassigned"
        action = f'reassigned ticket "{ticket.title}" to {assignee_name}'
    else:
        action = f'updated ticket "{ticket.title}"'

    activity_service.log_activity(
        db,
        user_id=actor.id,
        action=action,
        target_type=ActivityTargetType.TICKET,
        target_id=ticket.id,
        target_name=ticket.title,
        project_id=ticket.project_id,
    )
    return ticket


def delete_ticket(
    db: Session,
    hub: RealtimeHub,
    actor: User,
    ticket_id: UUID | str,
) -> None:
    """
    Delete a ticket (project owner or ticket reporter only).

    Raises:
        NotFoundError: Ticket absent
        ForbiddenError: Actor is neither project owner nor reporter
    """
    ticket = _get_ticket(db, ticket_id)
    project = db.get(Project, ticket.project_id)
    is_owner = project is not None and project.owner_id == actor.id
    if not is_owner and ticket.reporter_id != actor.id:
        raise ForbiddenError("Not authorized to delete this ticket")

    deleted_id = ticket.id
    deleted_title = ticket.title
    project_id = ticket.project_id

    db.delete(ticket)
    db.commit()

    side_effects.dispatch(
        db,
        f"realtime.{EventName.TICKET_DELETED}",
        _publish,
        hub,
        project_id,
        EventName.TICKET_DELETED,
        {"ticket_id": str(deleted_id), "project_id": str(project_id)},
        context={"user_id": actor.id, "project_id": project_id},
    )
    activity_service.log_activity(
        db,
        user_id=actor.id,
        action=f'deleted ticket "{deleted_title}"',
        target_type=ActivityTargetType.TICKET,
        target_id=deleted_id,
        target_name=deleted_title,
        project_id=project_id,
    )


# =============================================================================
# Reads
# =============================================================================

def get_ticket(db: Session, actor: User, ticket_id: UUID | str) -> Ticket:
    """
    Raises:
        NotFoundError: Ticket absent
        ForbiddenError: Actor is not a project member
    """
    ticket = _get_ticket(db, ticket_id)
    if not membership_service.is_member(db, ticket.project_id, actor.id):
        raise ForbiddenError("Not authorized to view this ticket")
    return ticket


def list_project_tickets(
    db: Session,
    actor: User,
    project_id: UUID | str,
    filters: TicketFilter | None = None,
) -> list[Ticket]:
    """Tickets of one project, newest first, narrowed by the given filters."""
    project = membership_service.get_project_for_member(
        db,
        project_id,
        actor,
        forbidden_message="Not authorized to view tickets for this project",
    )
    filters = filters or TicketFilter()
    return (
        db.query(Ticket)
        .filter(Ticket.project_id == project.id, *filters.predicates())
        .order_by(Ticket.created_at.desc())
        .all()
    )


def list_accessible_tickets(db: Session, actor: User) -> list[Ticket]:
    """Tickets across every project the actor belongs to, newest first."""
    project_ids = membership_service.accessible_project_ids(db, actor.id)
    if not project_ids:
        return []
    return (
        db.query(Ticket)
        .filter(Ticket.project_id.in_(project_ids))
        .order_by(Ticket.created_at.desc())
        .all()
    )


# =============================================================================
# Hydration
# =============================================================================

def get_ticket_context(db: Session, tickets: list[Ticket]) -> dict[str, dict[UUID, User]]:
    """Fetch assignees and reporters for tickets in bulk."""
    user_ids = set()
    for ticket in tickets:
        if ticket.assignee_id:
            user_ids.add(ticket.assignee_id)
        if ticket.reporter_id:
            user_ids.add(ticket.reporter_id)

    users = {}
    if user_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}
    return {"users": users}


def to_ticket_read(ticket: Ticket, context: dict[str, dict[UUID, User]]) -> TicketRead:
    """Convert Ticket model to TicketRead schema."""
    assignee = context["users"].get(ticket.assignee_id)
    reporter = context["users"].get(ticket.reporter_id)

    return TicketRead(
        id=ticket.id,
        project_id=ticket.project_id,
        title=ticket.title,
        description=ticket.description,
        status=TicketStatus(ticket.status),
        priority=TicketPriority(ticket.priority),
        type=TicketType(ticket.type),
        assignee_id=ticket.assignee_id,
        assignee=UserSummary.model_validate(assignee) if assignee else None,
        reporter_id=ticket.reporter_id,
        reporter=UserSummary.model_validate(reporter) if reporter else None,
        due_date=ticket.due_date,
        attachments=ticket.attachments or [],
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )
