"""
Authorization and tenant feature gating for CampusGate.

This package provides the role-permission table, the module map, the
authorization evaluator combining them with a tenant's feature flags, and the
route guard built on top. FastAPI dependencies live in ``.decorators``.
"""

from .authorization import (
    AccessContext,
    AuthorizationDecision,
    AuthorizationEvaluator,
    DenialReason,
    FeatureFlagReader,
)
from .guard import (
    GuardDecision,
    GuardedView,
    GuardRequirements,
    GuardState,
    RouteGuard,
)
from .modules import Module, ModuleFeatureMap, module_feature_map
from .rbac import (
    ALL_PERMISSIONS,
    RoleDefinition,
    RolePermissionTable,
    role_permission_table,
)

__all__ = [
    # Core services
    "AuthorizationEvaluator",
    "AccessContext",
    "RouteGuard",
    "GuardedView",

    # Models
    "ALL_PERMISSIONS",
    "RoleDefinition",
    "RolePermissionTable",
    "Module",
    "ModuleFeatureMap",
    "AuthorizationDecision",
    "DenialReason",
    "FeatureFlagReader",
    "GuardDecision",
    "GuardRequirements",
    "GuardState",

    # Defaults
    "role_permission_table",
    "module_feature_map",
]
