"""
Tenant feature schemas.

Feature keys come from a closed, versioned vocabulary. A tenant's flags are
held as an immutable ``TenantFeatureSet`` snapshot; mutations produce a new
snapshot with a bumped ``version``.
"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

FEATURE_VOCABULARY_VERSION = 1


class Feature(str, Enum):
    """Named capabilities a tenant can switch on or off."""
    ATTENDANCE_MANAGEMENT = "attendanceManagement"
    ONLINE_EXAMS = "onlineExams"
    LIBRARY_MANAGEMENT = "libraryManagement"
    TRANSPORT_MANAGEMENT = "transportManagement"
    HOSTEL_MANAGEMENT = "hostelManagement"
    FEE_MANAGEMENT = "feeManagement"
    PARENT_PORTAL = "parentPortal"
    STUDENT_PORTAL = "studentPortal"
    TEACHER_PORTAL = "teacherPortal"
    MESSAGING_SYSTEM = "messagingSystem"
    EVENT_MANAGEMENT = "eventManagement"
    REPORT_CARDS = "reportCards"
    DISCIPLINE_TRACKING = "disciplineTracking"
    HEALTH_RECORDS = "healthRecords"

    @classmethod
    def parse(cls, name: Union["Feature", str]) -> Optional["Feature"]:
        """Return the vocabulary member for ``name`` or None if unknown."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


class TenantFeature(BaseModel):
    """A single feature flag with its optional configuration."""
    model_config = ConfigDict(frozen=True)

    key: Feature
    is_enabled: bool
    config: Dict[str, Any] = Field(default_factory=dict)


class TenantFeatureSet(BaseModel):
    """Immutable snapshot of one tenant's feature flags."""
    model_config = ConfigDict(frozen=True)

    tenant_id: str
    features: Dict[Feature, TenantFeature]
    version: int = 0
    vocabulary_version: int = FEATURE_VOCABULARY_VERSION

    @classmethod
    def build(
        cls,
        tenant_id: str,
        flags: Mapping[Feature, bool],
        configs: Optional[Mapping[Feature, Dict[str, Any]]] = None,
        version: int = 0,
    ) -> "TenantFeatureSet":
        configs = configs or {}
        return cls(
            tenant_id=tenant_id,
            features={
                key: TenantFeature(
                    key=key,
                    is_enabled=flags.get(key, False),
                    config=dict(configs.get(key, {})),
                )
                for key in Feature
            },
            version=version,
        )

    def is_enabled(self, name: Union[Feature, str]) -> bool:
        """Flag state for ``name``; unknown keys read as disabled."""
        key = Feature.parse(name)
        if key is None:
            return False
        feature = self.features.get(key)
        return feature.is_enabled if feature else False

    # Satisfies the evaluator's feature-flag reader protocol
    is_feature_enabled = is_enabled

    def config_for(self, name: Union[Feature, str]) -> Dict[str, Any]:
        key = Feature.parse(name)
        if key is None or key not in self.features:
            return {}
        return dict(self.features[key].config)

    def as_flags(self) -> Dict[Feature, bool]:
        return {key: feature.is_enabled for key, feature in self.features.items()}

    def enabled_features(self) -> List[Feature]:
        return [key for key, feature in self.features.items() if feature.is_enabled]

    def replace(
        self,
        flags: Optional[Mapping[Feature, bool]] = None,
        configs: Optional[Mapping[Feature, Dict[str, Any]]] = None,
    ) -> "TenantFeatureSet":
        """Return a new snapshot with the given flags/configs applied."""
        merged_flags = self.as_flags()
        merged_flags.update(flags or {})
        merged_configs = {key: feature.config for key, feature in self.features.items()}
        merged_configs.update(configs or {})
        return TenantFeatureSet.build(
            self.tenant_id,
            merged_flags,
            merged_configs,
            version=self.version + 1,
        )


def default_feature_flags(disabled: Iterable[Union[Feature, str]] = ()) -> Dict[Feature, bool]:
    """Flags a new tenant starts with: everything on except ``disabled``."""
    disabled_keys = {Feature.parse(name) for name in disabled}
    return {key: key not in disabled_keys for key in Feature}


# API schemas

class FeatureToggleRequest(BaseModel):
    """Toggle request; omitting ``enabled`` flips the current state."""
    enabled: Optional[bool] = None


class FeatureUpdateRequest(BaseModel):
    """Bulk flag update keyed by feature name."""
    features: Dict[str, bool]


class FeatureConfigRequest(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)


class FeatureSetResponse(BaseModel):
    """Tenant feature set as returned by the API."""
    tenant_id: str
    version: int
    vocabulary_version: int
    features: Dict[str, bool]

    @classmethod
    def from_feature_set(cls, feature_set: TenantFeatureSet) -> "FeatureSetResponse":
        return cls(
            tenant_id=feature_set.tenant_id,
            version=feature_set.version,
            vocabulary_version=feature_set.vocabulary_version,
            features={key.value: enabled for key, enabled in feature_set.as_flags().items()},
        )
