"""
CampusGate API - Main application entry point.
"""
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from structlog.contextvars import bind_contextvars, clear_contextvars

from campusgate.api.v1.endpoints import dashboard
from campusgate.api.v1.router import api_router
from campusgate.core.config import settings
from campusgate.core.exceptions import CampusGateException
from campusgate.core.logging import get_logger, log_request_details, setup_logging
from campusgate.services.auth.authorization.decorators import GuardRedirect
from campusgate.services.auth.identity import IdentityProvider, identity_provider
from campusgate.services.tenant.features import TenantFeatureRegistry

# Setup logging
setup_logging()
logger = get_logger(__name__)


# Initialize Sentry if configured
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT or settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    logger.info(
        "Starting CampusGate API",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        tenants=len(app.state.tenant_registry.tenant_ids()),
    )

    yield

    logger.info("Shutting down CampusGate API")


def build_tenant_registry() -> TenantFeatureRegistry:
    """Registry seeded with the tenants named in settings."""
    registry = TenantFeatureRegistry()
    for tenant_id in settings.BOOTSTRAP_TENANT_IDS:
        registry.create_tenant(tenant_id)
    return registry


def create_app(
    tenant_registry: Optional[TenantFeatureRegistry] = None,
    provider: Optional[IdentityProvider] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        tenant_registry: Feature registry to serve; seeded from settings if omitted
        provider: Identity provider adapter; the token-based default if omitted

    Returns:
        Configured application
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if not settings.is_production else None,
        docs_url=f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else None,
        redoc_url=f"{settings.API_V1_PREFIX}/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.tenant_registry = tenant_registry if tenant_registry is not None else build_tenant_registry()
    app.state.identity_provider = provider or identity_provider

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Bind a request ID and log every request with timing information."""
        request_id = request.headers.get("X-Request-ID", str(time.time_ns()))
        clear_contextvars()
        bind_contextvars(request_id=request_id)

        start_time = time.time()
        logger.info(
            "Request started",
            **log_request_details(
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                client_ip=request.client.host if request.client else None,
            ),
        )

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(GuardRedirect)
    async def guard_redirect_handler(request: Request, exc: GuardRedirect):
        return RedirectResponse(url=exc.location, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(CampusGateException)
    async def campusgate_exception_handler(request: Request, exc: CampusGateException):
        logger.info(
            "request_rejected",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, **exc.details},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )

        # Don't expose internal errors in production
        if settings.is_production:
            return JSONResponse(
                status_code=500,
                content={"detail": "An internal error occurred"},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/")
    async def root() -> Dict[str, str]:
        """Public entry point; unauthenticated callers are redirected here."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else "Disabled in production",
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    app.include_router(dashboard.router, prefix=settings.DASHBOARD_ROUTE, tags=["dashboard"])

    return app


app = create_app()
