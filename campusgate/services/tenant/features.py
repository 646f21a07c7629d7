"""
Tenant feature registry.

Holds one immutable ``TenantFeatureSet`` per tenant. Every mutation builds a
new snapshot and swaps it in with a single assignment, so readers always see
a fully formed flag set. Only an admin of the tenant may mutate its flags.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from campusgate.core.config import settings
from campusgate.core.exceptions import (
    AuthorizationError,
    TenantAlreadyExistsError,
    TenantNotFoundError,
    UnknownFeatureError,
)
from campusgate.domain.schemas.tenant import (
    Feature,
    TenantFeatureSet,
    default_feature_flags,
)
from campusgate.domain.schemas.user import User
from campusgate.services.auth.authorization.authorization import AuthorizationEvaluator
from campusgate.services.auth.authorization.modules import Module

logger = structlog.get_logger(__name__)

FeatureKey = Union[Feature, str]


def parse_feature(name: FeatureKey) -> Feature:
    """Resolve a feature key, raising for names outside the vocabulary."""
    feature = Feature.parse(name)
    if feature is None:
        raise UnknownFeatureError(str(name))
    return feature


def parse_feature_flags(flags: Mapping[FeatureKey, bool]) -> Dict[Feature, bool]:
    """Validate every key before anything is applied."""
    return {parse_feature(name): bool(enabled) for name, enabled in flags.items()}


class TenantFeatureReader:
    """Live, synchronous flag reader for one tenant.

    Looks the snapshot up on every call so toggles are visible immediately.
    An unregistered tenant reads as all-disabled.
    """

    def __init__(self, registry: "TenantFeatureRegistry", tenant_id: str):
        self.registry = registry
        self.tenant_id = tenant_id

    def is_feature_enabled(self, name: str) -> bool:
        return self.registry.is_feature_enabled(self.tenant_id, name)


class TenantFeatureRegistry:
    """Per-tenant feature flags with admin-only mutation."""

    def __init__(self, default_disabled: Optional[Iterable[FeatureKey]] = None):
        disabled = (
            list(default_disabled) if default_disabled is not None
            else settings.DEFAULT_DISABLED_FEATURES
        )
        for name in disabled:
            parse_feature(name)
        self._defaults = default_feature_flags(disabled)
        self._feature_sets: Dict[str, TenantFeatureSet] = {}

    @property
    def defaults(self) -> Dict[Feature, bool]:
        return dict(self._defaults)

    def create_tenant(
        self,
        tenant_id: str,
        overrides: Optional[Mapping[FeatureKey, bool]] = None,
    ) -> TenantFeatureSet:
        """
        Initialize a tenant with the default flag set.

        Args:
            tenant_id: Tenant identifier
            overrides: Optional flags to apply on top of the defaults

        Returns:
            The tenant's initial feature set

        Raises:
            TenantAlreadyExistsError: If the tenant is already registered
            UnknownFeatureError: If an override names an unknown feature
        """
        if tenant_id in self._feature_sets:
            raise TenantAlreadyExistsError(tenant_id)

        flags = self.defaults
        flags.update(parse_feature_flags(overrides or {}))

        feature_set = TenantFeatureSet.build(tenant_id, flags)
        self._feature_sets[tenant_id] = feature_set
        logger.info(
            "tenant_features_initialized",
            tenant_id=tenant_id,
            enabled=[feature.value for feature in feature_set.enabled_features()],
        )
        return feature_set

    def has_tenant(self, tenant_id: str) -> bool:
        return tenant_id in self._feature_sets

    def tenant_ids(self) -> List[str]:
        return list(self._feature_sets)

    def get_feature_set(self, tenant_id: str) -> TenantFeatureSet:
        feature_set = self._feature_sets.get(tenant_id)
        if feature_set is None:
            raise TenantNotFoundError(tenant_id)
        return feature_set

    def is_feature_enabled(self, tenant_id: str, name: FeatureKey) -> bool:
        feature_set = self._feature_sets.get(tenant_id)
        if feature_set is None:
            return False
        return feature_set.is_enabled(name)

    def get_feature_config(self, tenant_id: str, name: FeatureKey) -> Dict[str, Any]:
        feature = parse_feature(name)
        return self.get_feature_set(tenant_id).config_for(feature)

    def reader(self, tenant_id: str) -> TenantFeatureReader:
        return TenantFeatureReader(self, tenant_id)

    def evaluator_for(self, tenant_id: str) -> AuthorizationEvaluator:
        """Authorization evaluator reading this tenant's live flags."""
        return AuthorizationEvaluator(self.reader(tenant_id))

    def toggle_feature(
        self,
        actor: Optional[User],
        tenant_id: str,
        name: FeatureKey,
        enabled: Optional[bool] = None,
    ) -> TenantFeatureSet:
        """
        Flip a feature flag, or set it when ``enabled`` is given.

        Raises:
            AuthorizationError: If the actor is not an admin of the tenant
            UnknownFeatureError: If ``name`` is not in the vocabulary
            TenantNotFoundError: If the tenant is not registered
        """
        feature = parse_feature(name)
        current = self._authorize_change(actor, tenant_id)

        new_state = (not current.is_enabled(feature)) if enabled is None else bool(enabled)
        updated = self._swap(current, current.replace(flags={feature: new_state}))

        logger.info(
            "tenant_feature_toggled",
            tenant_id=tenant_id,
            feature=feature.value,
            enabled=new_state,
            actor_id=actor.id,
            version=updated.version,
        )
        return updated

    def update_features(
        self,
        actor: Optional[User],
        tenant_id: str,
        flags: Mapping[FeatureKey, bool],
    ) -> TenantFeatureSet:
        """Apply several flag changes at once; nothing changes if any key is unknown."""
        parsed = parse_feature_flags(flags)
        current = self._authorize_change(actor, tenant_id)
        updated = self._swap(current, current.replace(flags=parsed))

        logger.info(
            "tenant_features_updated",
            tenant_id=tenant_id,
            changes={feature.value: enabled for feature, enabled in parsed.items()},
            actor_id=actor.id,
            version=updated.version,
        )
        return updated

    def set_feature_config(
        self,
        actor: Optional[User],
        tenant_id: str,
        name: FeatureKey,
        config: Mapping[str, Any],
    ) -> TenantFeatureSet:
        feature = parse_feature(name)
        current = self._authorize_change(actor, tenant_id)
        updated = self._swap(current, current.replace(configs={feature: dict(config)}))

        logger.info(
            "tenant_feature_config_updated",
            tenant_id=tenant_id,
            feature=feature.value,
            actor_id=actor.id,
            version=updated.version,
        )
        return updated

    def reset_to_defaults(self, actor: Optional[User], tenant_id: str) -> TenantFeatureSet:
        """Restore the default flags and drop all feature configuration."""
        current = self._authorize_change(actor, tenant_id)
        reset = TenantFeatureSet.build(tenant_id, self.defaults, version=current.version + 1)
        updated = self._swap(current, reset)

        logger.info(
            "tenant_features_reset",
            tenant_id=tenant_id,
            actor_id=actor.id,
            version=updated.version,
        )
        return updated

    def _authorize_change(self, actor: Optional[User], tenant_id: str) -> TenantFeatureSet:
        current = self.get_feature_set(tenant_id)

        allowed = (
            actor is not None
            and actor.tenant_id == tenant_id
            and self.evaluator_for(tenant_id).can_access_module(actor, Module.SETTINGS)
        )
        if not allowed:
            logger.warning(
                "tenant_feature_change_denied",
                tenant_id=tenant_id,
                actor_id=actor.id if actor else None,
            )
            raise AuthorizationError("Only a tenant admin can change feature settings")

        return current

    def _swap(self, current: TenantFeatureSet, updated: TenantFeatureSet) -> TenantFeatureSet:
        self._feature_sets[current.tenant_id] = updated
        return updated
