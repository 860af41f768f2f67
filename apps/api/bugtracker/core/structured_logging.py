"""Structured logging helpers; contexts are passed as ``extra=`` on log calls."""

from typing import Any

from starlette.requests import HTTPConnection

REQUEST_ID_HEADER = "x-request-id"


def build_log_context(
    *,
    user_id: str | None = None,
    project_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict with only the provided keys."""
    fields = {
        "user_id": user_id,
        "project_id": project_id,
        "request_id": request_id,
        "route": route,
        "method": method,
    }
    return {key: value for key, value in fields.items() if value}


def request_log_context(connection: HTTPConnection) -> dict[str, Any]:
    """Context for a request: path, method and the caller's request id if sent."""
    return build_log_context(
        request_id=connection.headers.get(REQUEST_ID_HEADER),
        route=connection.url.path,
        method=connection.scope.get("method"),
    )
