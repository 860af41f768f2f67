"""User service - registration, login and role management."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bugtracker.core.errors import (
    InvalidInputError,
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
)
from bugtracker.core.security import create_access_token, hash_password, verify_password
from bugtracker.db.enums import ActivityTargetType, Role
from bugtracker.db.models import User
from bugtracker.schemas.user import AuthResponse, UserRegister
from bugtracker.services import activity_service
from bugtracker.utils.normalization import normalize_email, normalize_name, parse_uuid


def get_user(db: Session, user_id: UUID | str | None) -> User | None:
    user_uuid = parse_uuid(user_id)
    if user_uuid is None:
        return None
    return db.get(User, user_uuid)


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (normalized)."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.asc()).all()


def create_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: Role = Role.MEMBER,
) -> User:
    """
    Create a user with a hashed password.

    Raises:
        InvalidInputError: Email already registered
    """
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise InvalidInputError("User already exists")

    user = User(
        name=normalize_name(name) or name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        raise InvalidInputError("User already exists")
    db.refresh(user)
    return user


def register(db: Session, data: UserRegister) -> User:
    """Register a new member account and log the activity."""
    user = create_user(db, data.name, data.email, data.password)
    activity_service.log_activity(
        db,
        user_id=user.id,
        action="registered as a new user",
        target_type=ActivityTargetType.USER,
        target_id=user.id,
        target_name=user.name,
    )
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Verify credentials.

    Raises:
        UnauthorizedError: Unknown email or wrong password (same message for both)
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    return user


def to_auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=Role(user.role),
        token=create_access_token(user.id, user.role),
    )


def update_role(db: Session, actor: User, user_id: UUID | str, role: Role) -> User:
    """
    Change another user's role (admin only; enforced by the router).

    Raises:
        NotFoundError: Target user absent
        InvalidOperationError: Admin targeting themselves
    """
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.id == actor.id:
        raise InvalidOperationError(
            "Admins cannot change their own role through this interface."
        )

    user.role = role.value
    db.commit()
    db.refresh(user)

    activity_service.log_activity(
        db,
        user_id=actor.id,
        action=f"changed role of {user.name} to {role.value}",
        target_type=ActivityTargetType.USER,
        target_id=user.id,
        target_name=user.name,
    )
    return user


def set_role_by_email(db: Session, email: str, role: Role) -> User:
    """Change a user's role without an acting admin (CLI bootstrap)."""
    user = get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")
    user.role = role.value
    db.commit()
    db.refresh(user)
    return user
