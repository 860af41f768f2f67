"""Enum definitions for application constants."""

from enum import Enum


class _ValueEnum(str, Enum):
    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid member value."""
        return value in cls._value2member_map_


class Role(_ValueEnum):
    """
    User roles.

    - MEMBER: Regular user; access is scoped by project membership
    - ADMIN: Can list users and change other users' roles
    """
    MEMBER = "member"
    ADMIN = "admin"


class ProjectStatus(_ValueEnum):
    """Project lifecycle status."""
    ACTIVE = "active"
    ON_HOLD = "on hold"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class TicketStatus(_ValueEnum):
    """Ticket workflow status."""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BLOCKED = "Blocked"


class TicketPriority(_ValueEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TicketType(_ValueEnum):
    BUG = "Bug"
    FEATURE = "Feature"
    TASK = "Task"


class NotificationType(_ValueEnum):
    """Notification categories."""
    TICKET_ASSIGNED = "TICKET_ASSIGNED"
    TICKET_UPDATED = "TICKET_UPDATED"
    COMMENT_ADDED = "COMMENT_ADDED"
    DUE_DATE_REMINDER = "DUE_DATE_REMINDER"
    MENTION = "MENTION"


class ActivityTargetType(_ValueEnum):
    """Entity kinds an activity can point at."""
    PROJECT = "Project"
    TICKET = "Ticket"
    USER = "User"
    COMMENT = "Comment"


# Defaults
DEFAULT_ROLE = Role.MEMBER
DEFAULT_PROJECT_STATUS = ProjectStatus.ACTIVE
DEFAULT_TICKET_STATUS = TicketStatus.TODO
DEFAULT_TICKET_PRIORITY = TicketPriority.MEDIUM
DEFAULT_TICKET_TYPE = TicketType.BUG
