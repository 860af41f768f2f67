"""Pydantic schemas for users and authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from bugtracker.db.enums import Role


class UserSummary(BaseModel):
    """Compact user embedded in other resources."""
    id: UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserRegister(BaseModel):
    """Request to register a new account."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    """User response (never includes the password hash)."""
    id: UUID
    name: str
    email: str
    role: Role
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """User identity plus a bearer token, returned by register and login."""
    id: UUID
    name: str
    email: str
    role: Role
    token: str


class RoleUpdate(BaseModel):
    role: Role
