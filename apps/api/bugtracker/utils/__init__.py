"""Utility modules."""

from bugtracker.utils.normalization import (
    escape_like_string,
    normalize_email,
    normalize_name,
    parse_uuid,
)

__all__ = [
    "escape_like_string",
    "normalize_email",
    "normalize_name",
    "parse_uuid",
]
