"""
Access summary endpoints for the view layer.
"""
from fastapi import APIRouter, Depends

from campusgate.domain.schemas.access import (
    AccessSummary,
    ModuleAccessResponse,
    PermissionCheckResponse,
)
from campusgate.services.auth.authorization.authorization import AccessContext
from campusgate.services.auth.authorization.decorators import get_access_context

router = APIRouter()


@router.get("/me", response_model=AccessSummary)
async def read_my_access(access: AccessContext = Depends(get_access_context)) -> AccessSummary:
    """Role shortcuts plus every feature and module the caller may use."""
    user = access.user
    return AccessSummary(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        is_admin=access.is_admin,
        is_teacher=access.is_teacher,
        is_student=access.is_student,
        is_parent=access.is_parent,
        features=[feature.value for feature in access.granted_features()],
        modules=[module.value for module in access.accessible_modules()],
    )


@router.get("/modules/{module}", response_model=ModuleAccessResponse)
async def check_module_access(
    module: str,
    access: AccessContext = Depends(get_access_context),
) -> ModuleAccessResponse:
    # Unknown modules answer allowed=false rather than 404
    return ModuleAccessResponse(module=module, allowed=access.can_access_module(module))


@router.get("/permissions/{feature}", response_model=PermissionCheckResponse)
async def check_permission(
    feature: str,
    access: AccessContext = Depends(get_access_context),
) -> PermissionCheckResponse:
    return PermissionCheckResponse(feature=feature, allowed=access.has_permission(feature))
