"""
FastAPI application entry point for the CollabCal backend.

This module initializes the FastAPI application with:
- CORS middleware for frontend development
- Exception handlers for consistent error responses
- Startup event handlers for settings validation
- Logging configuration

Environment Variables:
    COLLABCAL_DB_URL: Database URL
    COLLABCAL_ENV: Environment (production/development, default: development)
    COLLABCAL_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    COLLABCAL_ORG_TIMEZONE: Organization timezone (default: Asia/Tokyo)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.db.database import dispose_engine
from backend.src.services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from backend.src.utils.logging_config import init_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Load and validate settings
    - Shutdown: Dispose of the database engine

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting CollabCal backend application")

    settings = get_settings()
    logger.info(
        "Settings loaded",
        extra={
            "org_timezone": settings.org_timezone,
            "cycle_weekday": settings.cycle_weekday,
            "cycle_time": settings.cycle_time.isoformat(),
        },
    )

    yield

    logger.info("Shutting down CollabCal backend application")
    dispose_engine()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="CollabCal API",
    description="Backend API for collaborative events: invitations, "
                "personal schedules, approvals and participation points.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Configure CORS middleware for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


def _log_service_error(request: Request, exc: Exception, level: str = "warning") -> None:
    logger = get_logger("api")
    getattr(logger, level)(
        type(exc).__name__,
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        },
    )


@app.exception_handler(ValidationError)
async def service_validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle service-layer validation errors (rejected before any write).

    Returns:
        400 JSON response naming the offending field
    """
    _log_service_error(request, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation Error",
            "message": exc.message,
            "field": exc.field,
        }
    )


@app.exception_handler(ForbiddenError)
async def forbidden_exception_handler(
    request: Request, exc: ForbiddenError
) -> JSONResponse:
    _log_service_error(request, exc)
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"error": "Forbidden", "message": exc.message},
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(
    request: Request, exc: NotFoundError
) -> JSONResponse:
    _log_service_error(request, exc, level="info")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Not Found", "message": exc.message},
    )


@app.exception_handler(InvalidStateError)
async def invalid_state_exception_handler(
    request: Request, exc: InvalidStateError
) -> JSONResponse:
    """Answering something that was already approved or rejected."""
    _log_service_error(request, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "Invalid State",
            "message": exc.message,
            "current": exc.current,
        },
    )


@app.exception_handler(ConflictError)
async def conflict_exception_handler(
    request: Request, exc: ConflictError
) -> JSONResponse:
    _log_service_error(request, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "Conflict", "message": exc.message, "reason": exc.reason},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Args:
        request: HTTP request
        exc: SQLAlchemy exception

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "collabcal-backend",
        "version": "1.0.0",
    }


# API routers
from backend.src.api import events, participations, schedules, summary, task_requests

app.include_router(events.router, prefix="/api")
app.include_router(participations.router, prefix="/api")
app.include_router(schedules.router, prefix="/api")
app.include_router(summary.router, prefix="/api")
app.include_router(task_requests.router, prefix="/api")
