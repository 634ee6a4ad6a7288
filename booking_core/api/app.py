"""
FastAPI Application Module

This module provides the FastAPI application factory wiring the scheduling
engine to its repositories, error handlers and routes.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import Settings, get_settings
from ..core.logging import bind_request_context, clear_request_context, setup_logging
from ..database import (
    DatabaseManager,
    SQLAppointmentRepository,
    SQLProviderRepository,
    SQLServiceRepository,
)
from ..scheduling.base import SchedulingError
from ..scheduling.interfaces import (
    AppointmentRepository,
    AuthZ,
    PermissiveAuthZ,
    RoleBasedAuthZ,
)
from ..scheduling.memory import (
    InMemoryAppointmentRepository,
    InMemoryProviderRepository,
    InMemoryServiceRepository,
)
from ..scheduling.service import Clock, SchedulingService
from .base import APIException, ErrorCode, error_response, generate_request_id
from .routes import (
    appointments_router,
    providers_router,
    services_router,
    time_slots_router,
    work_schedules_router,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Health Check Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    timestamp: datetime
    checks: Dict[str, Any] = {}


# =============================================================================
# Exception Handlers
# =============================================================================


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or generate_request_id()


async def api_exception_handler(request: Request, exc: APIException):
    """Handle API exceptions."""
    request_id = _request_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc, request_id),
    )


async def scheduling_exception_handler(request: Request, exc: SchedulingError):
    """Translate scheduling errors into the error envelope."""
    api_exc = APIException.from_scheduling_error(exc)
    logger.info(
        f"Request rejected: {type(exc).__name__}: {exc.message}",
        extra={"path": request.url.path, "code": api_exc.code.value},
    )
    return await api_exception_handler(request, api_exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body/query validation failures."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    api_exc = APIException(
        code=ErrorCode.INVALID_REQUEST_BODY,
        message=first.get("msg", "Invalid request"),
        status_code=422,
        details={"errors": [
            {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg")}
            for e in errors
        ]},
        field=".".join(str(part) for part in first.get("loc", ())[1:]) or None,
    )
    return await api_exception_handler(request, api_exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    error_codes = {
        400: ErrorCode.VALIDATION_ERROR,
        403: ErrorCode.INSUFFICIENT_PERMISSIONS,
        404: ErrorCode.RESOURCE_NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        500: ErrorCode.INTERNAL_ERROR,
    }
    api_exc = APIException(
        code=error_codes.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        message=str(exc.detail),
        status_code=exc.status_code,
    )
    return await api_exception_handler(request, api_exc)


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    api_exc = APIException(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred",
        status_code=500,
    )
    return await api_exception_handler(request, api_exc)


# =============================================================================
# Engine Wiring
# =============================================================================


def build_scheduling(
    settings: Settings,
    database: Optional[DatabaseManager] = None,
    clock: Optional[Clock] = None,
) -> SchedulingService:
    """Create the scheduling service for the configured repository backend."""
    if settings.repository_backend == "sql":
        if database is None:
            raise ValueError("The sql repository backend needs a DatabaseManager")
        providers = SQLProviderRepository(database)
        services = SQLServiceRepository(database)
        appointments = SQLAppointmentRepository(database)
    else:
        providers = InMemoryProviderRepository()
        services = InMemoryServiceRepository()
        appointments = InMemoryAppointmentRepository()

    return SchedulingService(
        providers,
        services,
        appointments,
        authz=_build_authz(settings, appointments),
        default_config=settings.default_time_slot_config(),
        clock=clock,
    )


def _build_authz(settings: Settings, appointments: AppointmentRepository) -> AuthZ:
    if settings.authz_mode == "role":
        return RoleBasedAuthZ(appointments)
    return PermissiveAuthZ()


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: Optional[Settings] = None,
    scheduling: Optional[SchedulingService] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if omitted
        scheduling: Pre-built scheduling service (tests inject one with a
            fixed clock); built from ``settings`` if omitted
        clock: Clock for the built scheduling service

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    database: Optional[DatabaseManager] = None
    if scheduling is None:
        if settings.repository_backend == "sql":
            database = DatabaseManager.from_settings(settings)
        scheduling = build_scheduling(settings, database, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting booking API (backend={settings.repository_backend}, "
            f"authz={settings.authz_mode})"
        )
        if database is not None:
            await database.create_all()
            if not await database.health_check():
                logger.error("Database connection failed!")

        yield

        if database is not None:
            await database.close()
            logger.info("Database connection closed")

    app = FastAPI(
        title="Booking Core API",
        description="Availability and booking engine for appointment scheduling",
        version=__version__,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.scheduling = scheduling
    app.state.database = database

    # ==========================================================================
    # Middleware
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials="*" not in settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def track_request(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or generate_request_id()
        request.state.request_id = request_id
        bind_request_context(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context("request_id")
        response.headers["X-Request-ID"] = request_id
        return response

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(SchedulingError, scheduling_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ==========================================================================
    # Routes
    # ==========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        checks: Dict[str, Any] = {
            "api": "ok",
            "repository_backend": settings.repository_backend,
        }
        healthy = True
        if database is not None:
            healthy = await database.health_check()
            checks["database"] = "ok" if healthy else "error"

        return HealthResponse(
            status="healthy" if healthy else "degraded",
            version=__version__,
            timestamp=datetime.utcnow(),
            checks=checks,
        )

    app.include_router(appointments_router, prefix=settings.api_prefix)
    app.include_router(work_schedules_router, prefix=settings.api_prefix)
    app.include_router(time_slots_router, prefix=settings.api_prefix)
    app.include_router(providers_router, prefix=settings.api_prefix)
    app.include_router(services_router, prefix=settings.api_prefix)

    return app


# =============================================================================
# Entry Point
# =============================================================================


def run_server(reload: bool = False):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "booking_core.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server(reload=True)
