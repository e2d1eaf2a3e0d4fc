"""
Security Dashboard Service - Main Application
=============================================

FastAPI application for cloud resource inventory, incident response and
compliance evaluation.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import settings
from shared.database.postgres import PostgresClient
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse

from services.security_dashboard.errors import DashboardError, StoreError
from services.security_dashboard.routes import accounts, compliance, incidents, resources

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="security-dashboard",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "security_dashboard_starting",
        environment=settings.environment.value,
        port=settings.ports.security_dashboard,
    )

    # Startup
    try:
        PostgresClient.get_engine()
        logger.info("postgres_connected")
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("security_dashboard_shutting_down")
    await PostgresClient.close()


# Create FastAPI application
app = FastAPI(
    title="CIRRUS Security Dashboard",
    description="Cloud resource inventory, incident response and compliance evaluation",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its database.
    """
    components: dict[str, dict[str, Any]] = {
        "postgres": await PostgresClient.health_check(),
    }

    all_healthy = all(
        c.get("status") == "healthy" for c in components.values()
    )

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="security-dashboard",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "CIRRUS Security Dashboard",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    compliance.router,
    prefix="/api/v1/compliance",
    tags=["Compliance"],
)

app.include_router(
    accounts.router,
    prefix="/api/v1/accounts",
    tags=["Cloud Accounts"],
)

app.include_router(
    resources.router,
    prefix="/api/v1/resources",
    tags=["Resources"],
)

app.include_router(
    incidents.router,
    prefix="/api/v1/incidents",
    tags=["Incidents"],
)

app.include_router(
    incidents.timeline_router,
    prefix="/api/v1/timeline",
    tags=["Incidents"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error_response(
    status_code: int,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=message,
        message=message,
        status_code=status_code,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Map domain errors onto their HTTP status."""
    log = logger.error if isinstance(exc, StoreError) else logger.warning
    log(
        "dashboard_error",
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        path=request.url.path,
        **exc.context,
    )
    if isinstance(exc, StoreError):
        return _error_response(exc.status_code, "Internal server error")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Missing fields and malformed identifiers are client errors (400)."""
    errors = exc.errors()
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        errors=len(errors),
    )
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        message,
        details=[
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in errors
        ],
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.security_dashboard.main:app",
        host="0.0.0.0",
        port=settings.ports.security_dashboard,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
