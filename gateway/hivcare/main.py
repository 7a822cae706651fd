"""HIV Care - FastAPI Gateway Application."""

from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import uvicorn

from .config import settings, configure_logging
from .db import health_check, BackendError
from .security import SECURITY_HEADERS, user_id_from_token
from .routers import (
    auth, functions, profile, dashboard, medications, health_logs, lab_results,
    control_schedules, education, patients, schedules, staff, maintenance, stream,
)
from .models.common import ErrorResponse, HealthCheck
from .services.maintenance import maintenance_guard, MAINTENANCE_PAYLOAD

# Configure structured logging
configure_logging()
logger = structlog.get_logger()

# Prometheus metrics
request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration')
maintenance_block_count = Counter('maintenance_blocked_total', 'Requests blocked by maintenance mode')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting HIV Care Gateway", version=settings.version)

    await startup_health_checks()

    logger.info("Gateway startup complete")

    yield

    logger.info("Gateway shutdown complete")


async def startup_health_checks():
    """Perform startup health checks."""
    backend_health = await health_check()
    if backend_health.get("status") != "healthy":
        # Don't fail startup; the platform may come up later
        logger.warning("Backend health check degraded", health=backend_health)
    else:
        logger.info("Startup health checks completed")


# FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="HIV care coordination: medication schedules, health logs, lab results and education",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["*"],
)

# Trusted host middleware
if settings.environment == "production":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["*.esgul.com", "localhost"]
    )


def bearer_token(request: Request):
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


# Maintenance mode middleware
@app.middleware("http")
async def maintenance_middleware(request: Request, call_next):
    """Answer 503 while maintenance is on, except for the super admin."""
    path = request.url.path
    if not maintenance_guard.is_exempt(path) and await maintenance_guard.is_enabled():
        token = bearer_token(request)
        user_id = await user_id_from_token(token) if token else None
        try:
            allowed = await maintenance_guard.can_access(path, user_id)
        except BackendError:
            allowed = False

        if not allowed:
            maintenance_block_count.inc()
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={**MAINTENANCE_PAYLOAD, "timestamp": datetime.utcnow().isoformat()},
            )

    return await call_next(request)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value

    return response


# Request logging and metrics middleware
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log requests and collect metrics."""
    start_time = datetime.utcnow()

    request_id = f"req_{int(start_time.timestamp() * 1000000)}"
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("user-agent"),
        ip=request.client.host if request.client else None
    )

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.error(
            "Request failed",
            request_id=request_id,
            error=str(e),
            duration_ms=round(duration * 1000, 2)
        )
        request_count.labels(method=request.method, endpoint=request.url.path, status=500).inc()
        raise

    duration = (datetime.utcnow() - start_time).total_seconds()

    request_count.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()
    request_duration.observe(duration)

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        duration_ms=round(duration * 1000, 2)
    )

    response.headers["X-Request-ID"] = request_id
    return response


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return HTTP errors in the common error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), code=f"HTTP_{exc.status_code}").model_dump(mode="json"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report the first failing field rule as the error message."""
    errors = exc.errors()
    logger.warning(
        "Validation error",
        request_id=getattr(request.state, "request_id", None),
        errors=errors
    )

    message = "Validation error"
    if errors:
        message = str(errors[0].get("msg", message))
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error=message,
            code="VALIDATION_ERROR",
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": str(e.get("msg", ""))} for e in errors
            ]}
        ).model_dump(mode="json")
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "Unhandled exception",
        request_id=request_id,
        error=str(exc),
        exc_info=True
    )

    # Don't expose internal errors in production
    if settings.environment == "production":
        error_message = "Internal server error"
        details = None
    else:
        error_message = str(exc)
        details = {"type": type(exc).__name__}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error=error_message,
            code="INTERNAL_ERROR",
            details=details
        ).model_dump(mode="json")
    )


# Health check endpoint
@app.get("/health", response_model=HealthCheck)
async def health_endpoint():
    """Application health check."""
    backend_health = await health_check()

    services = {
        "backend": backend_health.get("status", "unknown"),
        "email": "configured" if settings.resend_api_key else "disabled",
    }

    if services["backend"] == "unhealthy":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthCheck(
                status="unhealthy",
                version=settings.version,
                environment=settings.environment,
                services=services
            ).model_dump(mode="json")
        )

    return HealthCheck(
        status="healthy",
        version=settings.version,
        environment=settings.environment,
        services=services
    )


# Metrics endpoint (Prometheus)
@app.get(settings.metrics_path)
async def metrics_endpoint():
    """Prometheus metrics endpoint."""
    if not settings.enable_metrics:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Metrics disabled"}
        )

    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# API versioning prefix
API_V1_PREFIX = "/api/v1"

# Include routers
ROUTERS = [
    (auth.router, "auth", "auth"),
    (functions.router, "functions", "functions"),
    (profile.router, "profile", "profile"),
    (dashboard.router, "dashboard", "dashboard"),
    (medications.router, "medications", "medications"),
    (health_logs.router, "health-logs", "health logs"),
    (lab_results.router, "lab-results", "lab results"),
    (control_schedules.router, "control-schedules", "control schedules"),
    (education.router, "education", "education"),
    (patients.router, "patients", "patients"),
    (schedules.router, "schedules", "schedules"),
    (staff.router, "staff", "staff"),
    (maintenance.router, "maintenance", "maintenance"),
    (stream.router, "stream", "streaming"),
]

for router, path, tag in ROUTERS:
    app.include_router(router, prefix=f"{API_V1_PREFIX}/{path}", tags=[tag])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
        "documentation": "/docs" if settings.debug else None,
        "health": "/health",
        "metrics": "/metrics" if settings.enable_metrics else None,
        "api_version": "v1",
        "api_base": f"{API_V1_PREFIX}",
        "status": "operational"
    }


# Development server
if __name__ == "__main__":
    uvicorn.run(
        "hivcare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True
    )
