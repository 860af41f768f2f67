"""Tickets router - ticket lifecycle within projects."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db, get_realtime_hub
from bugtracker.core.realtime import RealtimeHub
from bugtracker.db.enums import TicketPriority, TicketStatus
from bugtracker.db.models import User
from bugtracker.schemas.ticket import TicketCreate, TicketRead, TicketUpdate
from bugtracker.services import ticket_service
from bugtracker.services.ticket_service import TicketFilter


router = APIRouter()


def _to_reads(db: Session, tickets) -> list[TicketRead]:
    context = ticket_service.get_ticket_context(db, tickets)
    return [ticket_service.to_ticket_read(t, context) for t in tickets]


@router.post("/", response_model=TicketRead, status_code=201)
def create_ticket(
    data: TicketCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
):
    """Create a ticket in a project the caller belongs to."""
    ticket = ticket_service.create_ticket(db, hub, user, data)
    return _to_reads(db, [ticket])[0]


@router.get("/all", response_model=list[TicketRead])
def list_all_tickets(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Tickets across every project the caller belongs to."""
    return _to_reads(db, ticket_service.list_accessible_tickets(db, user))


@router.get("/project/{project_id}", response_model=list[TicketRead])
def list_project_tickets(
    project_id: str,
    status: TicketStatus | None = Query(None),
    priority: TicketPriority | None = Query(None),
    assignee: str | None = Query(None, description="Assignee user id"),
    search: str | None = Query(None, max_length=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = TicketFilter(
        status=status,
        priority=priority,
        assignee=assignee,
        search=search,
    )
    tickets = ticket_service.list_project_tickets(db, user, project_id, filters)
    return _to_reads(db, tickets)


@router.get("/ticket/{ticket_id}", response_model=TicketRead, include_in_schema=False)
@router.get("/{ticket_id}", response_model=TicketRead)
def get_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ticket = ticket_service.get_ticket(db, user, ticket_id)
    return _to_reads(db, [ticket])[0]


@router.put("/{ticket_id}", response_model=TicketRead)
def update_ticket(
    ticket_id: str,
    data: TicketUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
):
    """
    Partially update a ticket.

    Omitted fields are untouched; null clears description, assignee_id
    and due_date.
    """
    ticket = ticket_service.update_ticket(db, hub, user, ticket_id, data)
    return _to_reads(db, [ticket])[0]


@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
):
    """Delete a ticket (project owner or reporter only)."""
    ticket_service.delete_ticket(db, hub, user, ticket_id)
    return {"message": "Ticket removed"}
