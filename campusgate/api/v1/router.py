"""
API v1 router configuration.
"""
from fastapi import APIRouter

from campusgate.api.v1.endpoints import access, features, health

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(access.router, prefix="/access", tags=["access"])
api_router.include_router(features.router, prefix="/tenants", tags=["tenant-features"])
