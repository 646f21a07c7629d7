"""
Domain schemas for CampusGate.
"""

from .access import AccessSummary, ModuleAccessResponse, PermissionCheckResponse
from .tenant import (
    FEATURE_VOCABULARY_VERSION,
    Feature,
    FeatureConfigRequest,
    FeatureSetResponse,
    FeatureToggleRequest,
    FeatureUpdateRequest,
    TenantFeature,
    TenantFeatureSet,
    default_feature_flags,
)
from .user import Role, Session, User

__all__ = [
    # User schemas
    "Role",
    "User",
    "Session",

    # Tenant schemas
    "FEATURE_VOCABULARY_VERSION",
    "Feature",
    "TenantFeature",
    "TenantFeatureSet",
    "default_feature_flags",
    "FeatureToggleRequest",
    "FeatureUpdateRequest",
    "FeatureConfigRequest",
    "FeatureSetResponse",

    # Access schemas
    "AccessSummary",
    "ModuleAccessResponse",
    "PermissionCheckResponse",
]
