"""Comments router - discussion on tickets."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db
from bugtracker.db.models import User
from bugtracker.schemas.comment import CommentCreate, CommentRead
from bugtracker.services import comment_service


router = APIRouter()


@router.get("/ticket/{ticket_id}", response_model=list[CommentRead])
def list_comments(
    ticket_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Comments on a ticket, oldest first."""
    comments = comment_service.list_comments(db, user, ticket_id)
    authors = comment_service.get_comment_context(db, comments)
    return [comment_service.to_comment_read(c, authors) for c in comments]


@router.post("/", response_model=CommentRead, status_code=201)
def create_comment(
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = comment_service.create_comment(db, user, data)
    authors = comment_service.get_comment_context(db, [comment])
    return comment_service.to_comment_read(comment, authors)
