"""Security utilities for password hashing and bearer access tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from bugtracker.core.config import settings

# bcrypt only considers the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


# =============================================================================
# Passwords
# =============================================================================

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plaintext password with a per-password salt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# Access Token (JWT bearer)
# =============================================================================

def create_access_token(user_id: UUID, role: str) -> str:
    """
    Create signed access JWT.

    Always signs with current secret (JWT_SECRET).
    Token carries user identity and role; the user row stays authoritative.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify access JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
