"""Input normalization helpers shared by services and routers."""

from typing import Optional
from uuid import UUID


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Strip whitespace and collapse internal runs of spaces."""
    if not name:
        return None
    return " ".join(name.split())


def escape_like_string(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally (escape char is backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_uuid(value: str | UUID | None) -> UUID | None:
    """
    Parse an id from a path or body value.

    Returns None for malformed input so callers can treat it as "not found".
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None
