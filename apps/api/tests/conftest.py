"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test (all tables created)
- Users created through the service layer, with bearer token minting
- Recording realtime hub injected in place of the app's hub
- HTTPX AsyncClient bound to the ASGI app
"""
import os

# Must be set before any bugtracker import reads settings
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-32b"
os.environ.pop("SENTRY_DSN", None)

import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from bugtracker.core.deps import get_db, get_realtime_hub, get_session_factory
from bugtracker.core.security import create_access_token
from bugtracker.db.base import Base
from bugtracker.db.enums import Role
from bugtracker.db.models import User
from bugtracker.db.session import build_engine
from bugtracker.main import app
from bugtracker.services import user_service


# =============================================================================
# Realtime
# =============================================================================

@dataclass
class RecordingHub:
    """Stands in for RealtimeHub; records every publish instead of sending."""
    published: list[tuple[str, str, dict]] = field(default_factory=list)

    def publish(self, channel: str, event: str, payload: dict):
        self.published.append((channel, event, payload))
        return None

    def events(self, name: str | None = None) -> list[tuple[str, str, dict]]:
        return [p for p in self.published if name is None or p[1] == name]


@pytest.fixture(scope="function")
def hub() -> RecordingHub:
    return RecordingHub()


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """Database session shared by the test and the app under test."""
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# User & Auth Fixtures
# =============================================================================

@dataclass
class AuthContext:
    """Test authentication context."""
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def make_user(db: Session, name: str, role: Role = Role.MEMBER) -> User:
    email = f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
    return user_service.create_user(db, name, email, "password123", role=role)


def auth_for(user: User) -> AuthContext:
    return AuthContext(user=user, token=create_access_token(user.id, user.role))


@pytest.fixture(scope="function")
def make_auth(db: Session):
    """Factory for extra users: make_auth("Dave", Role.ADMIN)."""
    def _make(name: str, role: Role = Role.MEMBER) -> AuthContext:
        return auth_for(make_user(db, name, role=role))
    return _make


@pytest.fixture(scope="function")
def alice(db: Session) -> AuthContext:
    return auth_for(make_user(db, "Alice"))


@pytest.fixture(scope="function")
def bob(db: Session) -> AuthContext:
    return auth_for(make_user(db, "Bob"))


@pytest.fixture(scope="function")
def carol(db: Session) -> AuthContext:
    return auth_for(make_user(db, "Carol"))


@pytest.fixture(scope="function")
def admin(db: Session) -> AuthContext:
    return auth_for(make_user(db, "Admin", role=Role.ADMIN))


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    hub: RecordingHub,
    session_factory: sessionmaker,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient over the ASGI app; pass auth headers per request."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_realtime_hub] = lambda: hub
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
