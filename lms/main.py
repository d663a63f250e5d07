"""LMS API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lms.catalog.router import router as catalog_router
from lms.catalog.service import CatalogService
from lms.config import Settings, get_settings
from lms.core.context import get_request_id
from lms.core.database import init_async_cassandra, shutdown_async_cassandra
from lms.core.logging import configure_structlog, get_logger
from lms.core.middleware import RequestContextMiddleware
from lms.discussions.router import router as discussions_router
from lms.discussions.router import student_router as student_discussions_router
from lms.discussions.service import DiscussionService
from lms.enrollments.router import roster_router as enrollment_roster_router
from lms.enrollments.router import router as enrollments_router
from lms.enrollments.router import student_router as student_classes_router
from lms.enrollments.service import EnrollmentService
from lms.grading.router import router as grading_router
from lms.grading.router import student_router as student_grades_router
from lms.grading.service import GradingService
from lms.health import router as health_router
from lms.progression.router import router as progression_router
from lms.progression.service import ProgressionService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Build feature services on one session and expose them on ``app.state``."""
    keyspace = settings.cassandra_keyspace

    catalog_service = CatalogService(session=session, keyspace=keyspace)
    enrollment_service = EnrollmentService(
        session=session,
        keyspace=keyspace,
        catalog_service=catalog_service,
    )
    progression_service = ProgressionService(
        session=session,
        keyspace=keyspace,
        catalog_service=catalog_service,
        enrollment_service=enrollment_service,
        completion_check_applies_visibility_filter=(
            settings.completion_check_applies_visibility_filter
        ),
    )
    grading_service = GradingService(
        session=session,
        keyspace=keyspace,
        catalog_service=catalog_service,
        enrollment_service=enrollment_service,
        discussion_default_minimum_replies=settings.discussion_default_minimum_replies,
    )
    discussion_service = DiscussionService(
        session=session,
        keyspace=keyspace,
        catalog_service=catalog_service,
        enrollment_service=enrollment_service,
        grading_service=grading_service,
    )

    app.state.cassandra_session = session
    app.state.catalog_service = catalog_service
    app.state.enrollment_service = enrollment_service
    app.state.progression_service = progression_service
    app.state.grading_service = grading_service
    app.state.discussion_service = discussion_service
    logger.info(
        "services_initialized",
        completion_check_applies_visibility_filter=(
            settings.completion_check_applies_visibility_filter
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        init_services(app, session, settings)
    except Exception as e:
        # Routes answer 503 until the store is reachable
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Class progression and grading API",
        debug=False,  # Never expose stack traces in responses
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request validation errors (422)."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged with the stack trace; the body stays generic.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(enrollments_router)
    app.include_router(student_classes_router)
    app.include_router(progression_router)
    app.include_router(student_grades_router)
    app.include_router(student_discussions_router)
    app.include_router(catalog_router)
    app.include_router(enrollment_roster_router)
    app.include_router(grading_router)
    app.include_router(discussions_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LMS API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
