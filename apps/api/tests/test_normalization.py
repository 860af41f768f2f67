"""Tests for input normalization helpers."""
import uuid

from bugtracker.utils.normalization import (
    escape_like_string,
    normalize_email,
    normalize_name,
    parse_uuid,
)


def test_normalize_email():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"
    assert normalize_email("") is None
    assert normalize_email(None) is None


def test_normalize_name_collapses_whitespace():
    assert normalize_name("  Ada   Lovelace ") == "Ada Lovelace"
    assert normalize_name(None) is None


def test_escape_like_string():
    assert escape_like_string("100%_done\\") == "100\\%\\_done\\\\"
    assert escape_like_string("plain") == "plain"


def test_parse_uuid():
    value = uuid.uuid4()
    assert parse_uuid(str(value)) == value
    assert parse_uuid(value) is value
    assert parse_uuid("not-a-uuid") is None
    assert parse_uuid(None) is None
