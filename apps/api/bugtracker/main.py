"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bugtracker.core import error_sink
from bugtracker.core.config import settings
from bugtracker.core.errors import ServerError, TrackerError
from bugtracker.core.realtime import RealtimeHub
from bugtracker.core.structured_logging import request_log_context
from bugtracker.db.session import engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        release=settings.VERSION,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from bugtracker.core.rate_limit import limiter


# ============================================================================
# Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_MIGRATE:
        from bugtracker.core.migrations import ensure_migrations

        status = ensure_migrations(engine, auto_migrate=True)
        logger.info("Database at revision %s", ",".join(status.current_heads))
    yield


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Bug Tracker API",
    description="Multi-tenant issue tracking API with real-time project channels",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
    lifespan=lifespan,
)

# Process-wide realtime registry, injected via core.deps.get_realtime_hub
app.state.realtime = RealtimeHub()

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
# Applies RATE_LIMIT_API as the default per-route limit
app.add_middleware(SlowAPIMiddleware)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,  # Bearer tokens, no cookies
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Disposition"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    """Map service-layer errors to their status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Collapse request validation errors into one 400 message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return JSONResponse(status_code=400, content={"detail": ", ".join(messages)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    error_sink.capture(exc, "database", **request_log_context(request))
    return await tracker_error_handler(request, ServerError("Server error"))


# ============================================================================
# Routers
# ============================================================================

from bugtracker.routers import (
    activities,
    comments,
    notifications,
    projects,
    reports,
    tickets,
    users,
)

app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
app.include_router(comments.router, prefix="/comments", tags=["comments"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(activities.router, prefix="/activities", tags=["activities"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])

# WebSocket for real-time project channels
from bugtracker.routers import websocket as ws_router
app.include_router(ws_router.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
