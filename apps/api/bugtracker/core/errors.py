"""Domain error taxonomy raised by services and mapped to HTTP responses in main."""


class TrackerError(Exception):
    """Base exception for service-layer errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TrackerError):
    """Entity absent or id malformed."""

    status_code = 404


class ForbiddenError(TrackerError):
    """Authenticated but not permitted."""

    status_code = 403


class UnauthorizedError(TrackerError):
    """Missing or invalid credential."""

    status_code = 401


class InvalidInputError(TrackerError):
    """Missing field, bad enum value, or invalid foreign reference."""

    status_code = 400


class AlreadyMemberError(InvalidInputError):
    """User is already a member of the project."""

    pass


class InvalidOperationError(TrackerError):
    """Operation not allowed on this entity (e.g. removing the project owner)."""

    status_code = 400


class ServerError(TrackerError):
    """Unexpected store failure."""

    status_code = 500
