"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker
from starlette.requests import HTTPConnection

from bugtracker.core.realtime import RealtimeHub
from bugtracker.core.security import decode_access_token
from bugtracker.db.session import SessionLocal
from bugtracker.utils.normalization import parse_uuid


bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory for handlers that open short-lived sessions (WebSocket)."""
    return SessionLocal


def get_realtime_hub(connection: HTTPConnection) -> RealtimeHub:
    """Process-wide realtime hub owned by the app (works for HTTP and WebSocket)."""
    return connection.app.state.realtime


def resolve_user_from_token(db: Session, token: str | None):
    """
    Resolve a bearer token to a User.

    Raises:
        HTTPException 401: Missing, invalid or expired token, or unknown user
    """
    # Import here to avoid circular imports
    from bugtracker.db.models import User

    if not token:
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    try:
        payload = decode_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    user_id = parse_uuid(payload.get("sub"))
    user = db.get(User, user_id) if user_id else None
    if not user:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")

    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Get authenticated user from the Authorization: Bearer header.

    The user row is authoritative for role; the token only names the user.

    Raises:
        HTTPException 401: Authentication failed
    """
    token = credentials.credentials if credentials else None
    return resolve_user_from_token(db, token)


def require_roles(allowed_roles: list):
    """
    Dependency factory for role-based authorization.

    Uses enum values (not strings) to prevent drift.

    Usage:
        @router.get("/", dependencies=[Depends(require_roles([Role.ADMIN]))])
    """
    def dependency(user=Depends(get_current_user)):
        if user.role not in {r.value for r in allowed_roles}:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{user.role}' not authorized for this action",
            )
        return user
    return dependency
