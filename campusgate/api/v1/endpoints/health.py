"""
Health check endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from campusgate.core.config import settings
from campusgate.services.auth.authorization.decorators import get_tenant_registry
from campusgate.services.tenant.features import TenantFeatureRegistry

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "campusgate-api",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/health/ready")
async def readiness_check(
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> Dict[str, Any]:
    """
    Readiness check including the tenant feature registry.

    Returns:
        Readiness status with component health
    """
    components = {
        "api": "healthy",
        "tenant_registry": "healthy" if registry is not None else "unhealthy",
    }

    all_healthy = all(status == "healthy" for status in components.values())

    return {
        "status": "ready" if all_healthy else "not ready",
        "components": components,
        "tenants": len(registry.tenant_ids()) if registry is not None else 0,
    }
