"""
Tenant feature management endpoints.

Reads are open to any authenticated member of the tenant; every change goes
through the registry, which only accepts admins of that tenant.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from campusgate.domain.schemas.tenant import (
    FeatureConfigRequest,
    FeatureSetResponse,
    FeatureToggleRequest,
    FeatureUpdateRequest,
)
from campusgate.domain.schemas.user import User
from campusgate.services.auth.authorization.authorization import AccessContext
from campusgate.services.auth.authorization.decorators import (
    get_current_user,
    get_tenant_registry,
    require_admin,
)
from campusgate.services.tenant.features import TenantFeatureRegistry, parse_feature

router = APIRouter()


@router.get("/current/features", response_model=FeatureSetResponse)
async def read_features(
    user: User = Depends(get_current_user),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> FeatureSetResponse:
    """Current tenant's feature flags."""
    return FeatureSetResponse.from_feature_set(registry.get_feature_set(user.tenant_id))


@router.get("/current/features/{feature}/config")
async def read_feature_config(
    feature: str,
    user: User = Depends(get_current_user),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> dict:
    key = parse_feature(feature)
    return {"feature": key.value, "config": registry.get_feature_config(user.tenant_id, key)}


@router.put("/current/features/{feature}", response_model=FeatureSetResponse)
async def toggle_feature(
    feature: str,
    body: Optional[FeatureToggleRequest] = None,
    access: AccessContext = Depends(require_admin()),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> FeatureSetResponse:
    """Set a flag, or flip it when no explicit state is given."""
    enabled = body.enabled if body else None
    feature_set = registry.toggle_feature(access.user, access.user.tenant_id, feature, enabled)
    return FeatureSetResponse.from_feature_set(feature_set)


@router.patch("/current/features", response_model=FeatureSetResponse)
async def update_features(
    body: FeatureUpdateRequest,
    access: AccessContext = Depends(require_admin()),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> FeatureSetResponse:
    feature_set = registry.update_features(access.user, access.user.tenant_id, body.features)
    return FeatureSetResponse.from_feature_set(feature_set)


@router.put("/current/features/{feature}/config", response_model=FeatureSetResponse)
async def update_feature_config(
    feature: str,
    body: FeatureConfigRequest,
    access: AccessContext = Depends(require_admin()),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> FeatureSetResponse:
    feature_set = registry.set_feature_config(
        access.user, access.user.tenant_id, feature, body.config
    )
    return FeatureSetResponse.from_feature_set(feature_set)


@router.post("/current/features/reset", response_model=FeatureSetResponse)
async def reset_features(
    access: AccessContext = Depends(require_admin()),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> FeatureSetResponse:
    feature_set = registry.reset_to_defaults(access.user, access.user.tenant_id)
    return FeatureSetResponse.from_feature_set(feature_set)
