"""
Post-commit side effects.

Notification and activity writes run after the primary mutation has been
committed. A failure here rolls back only the side effect's own pending work
and is reported to the error sink; the caller's request still succeeds.
"""

from typing import Any, Callable, TypeVar

from sqlalchemy.orm import Session

from bugtracker.core import error_sink

T = TypeVar("T")


def dispatch(
    db: Session,
    label: str,
    fn: Callable[..., T],
    *args: Any,
    context: dict[str, Any] | None = None,
    **kwargs: Any,
) -> T | None:
    """Run fn(*args, **kwargs); on failure roll back its writes and capture the error."""
    try:
        return fn(*args, **kwargs)
    except Exception as exc:
        try:
            db.rollback()
        except Exception as rollback_exc:
            error_sink.capture(rollback_exc, f"{label}.rollback", **(context or {}))
        error_sink.capture(exc, label, **(context or {}))
        return None
