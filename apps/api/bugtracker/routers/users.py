"""Users router - registration, login and role administration."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db, require_roles
from bugtracker.core.rate_limit import AUTH_LIMIT, limiter
from bugtracker.db.enums import Role
from bugtracker.db.models import User
from bugtracker.schemas.user import (
    AuthResponse,
    RoleUpdate,
    UserLogin,
    UserRead,
    UserRegister,
)
from bugtracker.services import user_service


router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(
    request: Request,
    data: UserRegister,
    db: Session = Depends(get_db),
):
    """Create a member account and return it with a bearer token."""
    user = user_service.register(db, data)
    return user_service.to_auth_response(user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    data: UserLogin,
    db: Session = Depends(get_db),
):
    user = user_service.authenticate(db, data.email, data.password)
    return user_service.to_auth_response(user)


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.get("/", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_roles([Role.ADMIN])),
):
    """List all users (admin only)."""
    return user_service.list_users(db)


@router.put("/{user_id}/role", response_model=UserRead)
def update_user_role(
    user_id: str,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles([Role.ADMIN])),
):
    """Change another user's role (admin only; never your own)."""
    return user_service.update_role(db, admin, user_id, data.role)
