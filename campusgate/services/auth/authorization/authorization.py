"""
Authorization evaluator for CampusGate.

Combines the role-permission table, the module map and a tenant's feature
flags into the two access questions every protected view asks:

- may this user use feature X?  (``has_permission``)
- may this user enter module Y? (``can_access_module``)

A permission requires BOTH a role grant and an enabled tenant flag. The admin
wildcard satisfies the role half only. Every failure is a plain ``False``;
nothing here raises.
"""

from enum import Enum
from typing import List, Optional, Protocol, Union

import structlog
from pydantic import BaseModel

from campusgate.domain.schemas.tenant import Feature
from campusgate.domain.schemas.user import Role, User

from .modules import Module, ModuleFeatureMap, module_feature_map
from .rbac import ALL_PERMISSIONS, RolePermissionTable, role_permission_table

logger = structlog.get_logger(__name__)


class FeatureFlagReader(Protocol):
    """Synchronous read access to one tenant's current feature flags."""

    def is_feature_enabled(self, name: str) -> bool:
        ...


class DenialReason(str, Enum):
    """Why an access check was denied."""
    UNAUTHENTICATED = "unauthenticated"
    ROLE_LACKS_PERMISSION = "role_lacks_permission"
    FEATURE_DISABLED = "feature_disabled"
    UNKNOWN_MODULE = "unknown_module"
    ADMIN_ONLY = "admin_only"
    INSUFFICIENT_ROLE = "insufficient_role"


class AuthorizationDecision(BaseModel):
    """Result of a single access check. Computed fresh, never persisted."""
    allowed: bool
    reason: Optional[DenialReason] = None
    feature: Optional[str] = None
    module: Optional[str] = None

    @property
    def denied(self) -> bool:
        """Check if authorization was denied."""
        return not self.allowed


def _name(value: Union[Enum, str, None]) -> Optional[str]:
    if isinstance(value, Enum):
        return value.value
    return value


class AuthorizationEvaluator:
    """
    Pure projection over (user role, role table, tenant flags).

    The evaluator holds no mutable state: each check reads the feature reader
    it was constructed with, so a decision always reflects the flag state the
    reader exposes at call time.
    """

    def __init__(
        self,
        feature_reader: FeatureFlagReader,
        role_table: Optional[RolePermissionTable] = None,
        module_map: Optional[ModuleFeatureMap] = None,
    ):
        self.feature_reader = feature_reader
        self.role_table = role_table or role_permission_table
        self.module_map = module_map or module_feature_map

    def check_permission(
        self,
        user: Optional[User],
        feature: Union[Feature, str],
    ) -> AuthorizationDecision:
        """
        Evaluate the role grant and the tenant flag for ``feature``.

        Args:
            user: Authenticated user, or None
            feature: Feature name (vocabulary member or raw key)

        Returns:
            AuthorizationDecision with the denial reason if not allowed
        """
        feature_name = _name(feature)

        if user is None:
            return AuthorizationDecision(
                allowed=False,
                reason=DenialReason.UNAUTHENTICATED,
                feature=feature_name,
            )

        if not self.role_table.grants(user.role, feature_name):
            decision = AuthorizationDecision(
                allowed=False,
                reason=DenialReason.ROLE_LACKS_PERMISSION,
                feature=feature_name,
            )
        elif not self._flag_enabled(feature_name):
            decision = AuthorizationDecision(
                allowed=False,
                reason=DenialReason.FEATURE_DISABLED,
                feature=feature_name,
            )
        else:
            decision = AuthorizationDecision(allowed=True, feature=feature_name)

        logger.debug(
            "permission_check",
            user_id=user.id,
            role=_name(user.role),
            feature=feature_name,
            allowed=decision.allowed,
            reason=_name(decision.reason),
        )
        return decision

    def check_module(
        self,
        user: Optional[User],
        module: Union[Module, str],
    ) -> AuthorizationDecision:
        """
        Evaluate entry into ``module``.

        Unknown modules are denied. ``settings`` is an identity property
        (admin only) and ignores feature flags. Modules mapped to the
        wildcard are open to any authenticated user.
        """
        module_name = _name(module)
        feature_name = self.module_map.feature_for(module)

        if feature_name is None:
            logger.debug("unknown_module_denied", module=module_name)
            return AuthorizationDecision(
                allowed=False,
                reason=DenialReason.UNKNOWN_MODULE,
                module=module_name,
            )

        if Module.parse(module) is Module.SETTINGS:
            if user is None:
                return AuthorizationDecision(
                    allowed=False,
                    reason=DenialReason.UNAUTHENTICATED,
                    module=module_name,
                )
            if user.role != Role.ADMIN:
                return AuthorizationDecision(
                    allowed=False,
                    reason=DenialReason.ADMIN_ONLY,
                    module=module_name,
                )
            return AuthorizationDecision(allowed=True, module=module_name)

        if feature_name == ALL_PERMISSIONS:
            if user is None:
                return AuthorizationDecision(
                    allowed=False,
                    reason=DenialReason.UNAUTHENTICATED,
                    module=module_name,
                )
            return AuthorizationDecision(allowed=True, module=module_name)

        decision = self.check_permission(user, feature_name)
        return decision.model_copy(update={"module": module_name})

    def has_permission(self, user: Optional[User], feature: Union[Feature, str]) -> bool:
        """Check if ``user`` may use ``feature`` in the current tenant."""
        return self.check_permission(user, feature).allowed

    def can_access_module(self, user: Optional[User], module: Union[Module, str]) -> bool:
        """Check if ``user`` may enter ``module``."""
        return self.check_module(user, module).allowed

    def for_user(self, user: Optional[User]) -> "AccessContext":
        """Bind the evaluator to one user for the view layer."""
        return AccessContext(self, user)

    def _flag_enabled(self, feature_name: Optional[str]) -> bool:
        if feature_name is None:
            return False
        try:
            return bool(self.feature_reader.is_feature_enabled(feature_name))
        except Exception as e:
            # Fail closed on a broken flag source
            logger.error("feature_flag_read_failed", feature=feature_name, error=str(e))
            return False


class AccessContext:
    """Access checks bound to the current user plus role shortcuts."""

    def __init__(self, evaluator: AuthorizationEvaluator, user: Optional[User]):
        self.evaluator = evaluator
        self.user = user

        role = user.role if user else None
        self.is_admin = role == Role.ADMIN
        # Admins can do everything teachers can
        self.is_teacher = role == Role.TEACHER or self.is_admin
        self.is_student = role == Role.STUDENT
        self.is_parent = role == Role.PARENT

    def has_permission(self, feature: Union[Feature, str]) -> bool:
        return self.evaluator.has_permission(self.user, feature)

    def can_access_module(self, module: Union[Module, str]) -> bool:
        return self.evaluator.can_access_module(self.user, module)

    def granted_features(self) -> List[Feature]:
        return [feature for feature in Feature if self.has_permission(feature)]

    def accessible_modules(self) -> List[Module]:
        return [module for module in Module if self.can_access_module(module)]
