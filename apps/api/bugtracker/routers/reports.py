"""Reports router - project/user aggregates and CSV export."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db
from bugtracker.db.models import User
from bugtracker.schemas.report import ProjectReport, UserReport
from bugtracker.services import report_service


router = APIRouter()


@router.get("/project/{project_id}", response_model=ProjectReport)
def project_report(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return report_service.project_report(db, user, project_id)


@router.get("/user/{user_id}", response_model=UserReport)
def user_report(
    user_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Workload report for a user (self or admin)."""
    return report_service.user_report(db, user, user_id)


@router.get("/export/tickets/{project_id}")
def export_tickets(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Download a project's tickets as CSV."""
    content = report_service.export_tickets_csv(db, user, project_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="tickets-{project_id}.csv"'
        },
    )
