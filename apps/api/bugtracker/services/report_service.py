"""
Report service - read-only aggregation over tickets.

Breakdowns are computed in SQL with GROUP BY; averages in Python so the
result is identical on SQLite and PostgreSQL.
"""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from bugtracker.core.errors import ForbiddenError, NotFoundError
from bugtracker.db.enums import Role, TicketStatus
from bugtracker.db.models import Project, Ticket, User
from bugtracker.schemas.report import (
    AssigneeCount,
    ProjectCount,
    ProjectReport,
    UserReport,
)
from bugtracker.services import membership_service, ticket_service
from bugtracker.utils.normalization import parse_uuid

SECONDS_PER_DAY = 60 * 60 * 24

CSV_HEADER = [
    "ID",
    "Title",
    "Description",
    "Status",
    "Priority",
    "Type",
    "Assignee",
    "Reporter",
    "Created At",
    "Updated At",
]


def _count_by(db: Session, column, *criteria) -> dict[str, int]:
    rows = (
        db.query(column, func.count(Ticket.id))
        .filter(*criteria)
        .group_by(column)
        .all()
    )
    return {value: count for value, count in rows}


def format_days(seconds: float) -> str:
    """Format a duration in seconds as days with two decimals."""
    return f"{seconds / SECONDS_PER_DAY:.2f}"


def average_resolution_time(tickets: list[Ticket]) -> str:
    """Mean of updated_at - created_at over Done tickets, in days; "0.00" when none."""
    durations = [
        (t.updated_at - t.created_at).total_seconds()
        for t in tickets
        if t.status == TicketStatus.DONE.value
    ]
    if not durations:
        return format_days(0)
    return format_days(sum(durations) / len(durations))


def project_report(db: Session, user: User, project_id: UUID | str) -> ProjectReport:
    """
    Raises:
        NotFoundError: Project absent
        ForbiddenError: Not a member
    """
    project = membership_service.get_project_for_member(
        db,
        project_id,
        user,
        forbidden_message="Not authorized to view reports for this project",
    )
    in_project = Ticket.project_id == project.id

    total = db.query(func.count(Ticket.id)).filter(in_project).scalar() or 0

    # Only assignees that still resolve to a user are listed
    assignee_rows = (
        db.query(User.id, User.name, func.count(Ticket.id))
        .select_from(Ticket)
        .join(User, User.id == Ticket.assignee_id)
        .filter(in_project)
        .group_by(User.id, User.name)
        .order_by(func.count(Ticket.id).desc(), User.name)
        .all()
    )

    done_tickets = (
        db.query(Ticket)
        .filter(in_project, Ticket.status == TicketStatus.DONE.value)
        .all()
    )

    return ProjectReport(
        project_id=project.id,
        total_tickets=total,
        status_breakdown=_count_by(db, Ticket.status, in_project),
        priority_breakdown=_count_by(db, Ticket.priority, in_project),
        type_breakdown=_count_by(db, Ticket.type, in_project),
        assignee_breakdown=[
            AssigneeCount(assignee_id=uid, name=name, count=count)
            for uid, name, count in assignee_rows
        ],
        avg_resolution_time=average_resolution_time(done_tickets),
    )


def user_report(db: Session, requester: User, user_id: UUID | str) -> UserReport:
    """
    Workload of one user (self or admin).

    Raises:
        ForbiddenError: Not self and not admin
        NotFoundError: User absent
    """
    user_uuid = parse_uuid(user_id)
    if requester.id != user_uuid and requester.role != Role.ADMIN.value:
        raise ForbiddenError("Not authorized to view this user's report")

    user = db.get(User, user_uuid) if user_uuid else None
    if user is None:
        raise NotFoundError("User not found")

    assigned = Ticket.assignee_id == user.id
    total = db.query(func.count(Ticket.id)).filter(assigned).scalar() or 0

    project_rows = (
        db.query(Project.id, Project.title, func.count(Ticket.id))
        .select_from(Ticket)
        .join(Project, Project.id == Ticket.project_id)
        .filter(assigned)
        .group_by(Project.id, Project.title)
        .order_by(func.count(Ticket.id).desc(), Project.title)
        .all()
    )

    return UserReport(
        user_id=user.id,
        total_assigned=total,
        status_breakdown=_count_by(db, Ticket.status, assigned),
        priority_breakdown=_count_by(db, Ticket.priority, assigned),
        project_breakdown=[
            ProjectCount(project_id=pid, name=title, count=count)
            for pid, title, count in project_rows
        ],
    )


# =============================================================================
# CSV Export
# =============================================================================

def escape_csv_field(value) -> str:
    """
    Quote a field for CSV.

    Embedded quotes are doubled; the field is wrapped in quotes when it
    contains a comma or a line break.
    """
    if value is None:
        return ""
    text_value = str(value).replace('"', '""')
    if any(ch in text_value for ch in (",", "\n", "\r")):
        return f'"{text_value}"'
    return text_value


def _format_timestamp(value) -> str:
    return value.isoformat() if value else ""


def export_tickets_csv(db: Session, user: User, project_id: UUID | str) -> str:
    """Render a project's tickets (oldest first) as CSV text."""
    project = membership_service.get_project_for_member(
        db,
        project_id,
        user,
        forbidden_message="Not authorized to export tickets for this project",
    )
    tickets = (
        db.query(Ticket)
        .filter(Ticket.project_id == project.id)
        .order_by(Ticket.created_at.asc())
        .all()
    )
    users = ticket_service.get_ticket_context(db, tickets)["users"]

    lines = [",".join(CSV_HEADER)]
    for ticket in tickets:
        assignee = users.get(ticket.assignee_id)
        reporter = users.get(ticket.reporter_id)
        row = [
            str(ticket.id),
            escape_csv_field(ticket.title),
            escape_csv_field(ticket.description or ""),
            escape_csv_field(ticket.status),
            escape_csv_field(ticket.priority),
            escape_csv_field(ticket.type),
            escape_csv_field(assignee.name if assignee else "Unassigned"),
            escape_csv_field(reporter.name if reporter else "Unknown"),
            _format_timestamp(ticket.created_at),
            _format_timestamp(ticket.updated_at),
        ]
        lines.append(",".join(row))
    return "\n".join(lines) + "\n"

