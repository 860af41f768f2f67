"""Pydantic schemas for API request/response models."""

from bugtracker.schemas.user import (
    AuthResponse,
    RoleUpdate,
    UserLogin,
    UserRead,
    UserRegister,
    UserSummary,
)
from bugtracker.schemas.project import (
    MemberChange,
    ProjectCreate,
    ProjectRead,
    ProjectRef,
    ProjectUpdate,
)
from bugtracker.schemas.ticket import (
    Attachment,
    TicketCreate,
    TicketRead,
    TicketUpdate,
)
from bugtracker.schemas.comment import CommentCreate, CommentRead
from bugtracker.schemas.notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationRead,
    RelatedRef,
)
from bugtracker.schemas.activity import ActivityRead
from bugtracker.schemas.report import (
    AssigneeCount,
    ProjectCount,
    ProjectReport,
    UserReport,
)

__all__ = [
    "ActivityRead",
    "AssigneeCount",
    "Attachment",
    "AuthResponse",
    "CommentCreate",
    "CommentRead",
    "MarkAllReadResponse",
    "MemberChange",
    "NotificationCreate",
    "NotificationRead",
    "ProjectCount",
    "ProjectCreate",
    "ProjectRead",
    "ProjectRef",
    "ProjectReport",
    "ProjectUpdate",
    "RelatedRef",
    "RoleUpdate",
    "TicketCreate",
    "TicketRead",
    "TicketUpdate",
    "UserLogin",
    "UserRead",
    "UserRegister",
    "UserSummary",
]
