"""Error sink for side-channel failures that must never fail a request."""

import logging
from typing import Any

import sentry_sdk

from bugtracker.core.config import settings
from bugtracker.core.structured_logging import build_log_context


logger = logging.getLogger(__name__)


def capture(exc: BaseException, label: str, **context: Any) -> None:
    """
    Record a swallowed exception.

    Logs with traceback and a minimal context dict, then forwards to Sentry
    when error tracking is configured.
    """
    logger.error(
        "%s failed: %s",
        label,
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra=build_log_context(
            user_id=_as_str(context.get("user_id")),
            project_id=_as_str(context.get("project_id")),
            request_id=_as_str(context.get("request_id")),
            route=_as_str(context.get("route")) or label,
            method=_as_str(context.get("method")),
        ),
    )

    if not settings.SENTRY_DSN:
        return
    try:
        sentry_sdk.capture_exception(exc)
    except Exception as report_exc:
        logger.warning("Failed to report exception: %s", report_exc)


def _as_str(value: Any) -> str | None:
    return str(value) if value is not None else None
