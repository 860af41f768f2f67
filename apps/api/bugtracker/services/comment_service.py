"""Comment service - append-only discussion on tickets."""

from uuid import UUID

from sqlalchemy.orm import Session

from bugtracker.core.config import settings
from bugtracker.core.errors import ForbiddenError, NotFoundError
from bugtracker.db.enums import ActivityTargetType
from bugtracker.db.models import Comment, Ticket, User
from bugtracker.schemas.comment import CommentCreate, CommentRead
from bugtracker.schemas.user import UserSummary
from bugtracker.services import activity_service, membership_service
from bugtracker.utils.normalization import parse_uuid


def _get_ticket(db: Session, ticket_id: UUID | str, user: User) -> Ticket:
    """
    Load the ticket being discussed.

    Membership is only enforced when COMMENTS_REQUIRE_MEMBERSHIP is on.
    """
    ticket_uuid = parse_uuid(ticket_id)
    ticket = db.get(Ticket, ticket_uuid) if ticket_uuid else None
    if ticket is None:
        raise NotFoundError("Ticket not found")
    if settings.COMMENTS_REQUIRE_MEMBERSHIP and not membership_service.is_member(
        db, ticket.project_id, user.id
    ):
        raise ForbiddenError("Not authorized to access comments on this ticket")
    return ticket


def list_comments(db: Session, user: User, ticket_id: UUID | str) -> list[Comment]:
    """Comments on a ticket, oldest first."""
    ticket = _get_ticket(db, ticket_id, user)
    return (
        db.query(Comment)
        .filter(Comment.ticket_id == ticket.id)
        .order_by(Comment.created_at.asc())
        .all()
    )


def create_comment(db: Session, user: User, data: CommentCreate) -> Comment:
    """Add a comment and log it against the ticket's project."""
    ticket = _get_ticket(db, data.ticket_id, user)

    comment = Comment(ticket_id=ticket.id, user_id=user.id, text=data.text)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    activity_service.log_activity(
        db,
        user_id=user.id,
        action="added a comment",
        target_type=ActivityTargetType.COMMENT,
        target_id=comment.id,
        target_name=ticket.title,
        project_id=ticket.project_id,
    )
    return comment


def get_comment_context(db: Session, comments: list[Comment]) -> dict[UUID, User]:
    """Fetch comment authors in bulk."""
    user_ids = {c.user_id for c in comments}
    if not user_ids:
        return {}
    return {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}


def to_comment_read(comment: Comment, authors: dict[UUID, User]) -> CommentRead:
    author = authors.get(comment.user_id)
    return CommentRead(
        id=comment.id,
        ticket_id=comment.ticket_id,
        text=comment.text,
        user=UserSummary.model_validate(author) if author else None,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )
