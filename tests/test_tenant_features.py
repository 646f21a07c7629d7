"""
Tests for the tenant feature registry.
"""
import pytest

from campusgate.core.exceptions import (
    AuthorizationError,
    TenantAlreadyExistsError,
    TenantNotFoundError,
    UnknownFeatureError,
)
from campusgate.domain.schemas.tenant import Feature, TenantFeatureSet
from campusgate.services.auth.authorization.modules import Module
from campusgate.services.tenant.features import (
    TenantFeatureRegistry,
    parse_feature,
    parse_feature_flags,
)
from tests.fixtures.auth import OTHER_TENANT_ID, TENANT_ID, AuthTestData

DISABLED_BY_DEFAULT = {
    Feature.TRANSPORT_MANAGEMENT,
    Feature.HOSTEL_MANAGEMENT,
    Feature.DISCIPLINE_TRACKING,
    Feature.HEALTH_RECORDS,
}


class TestParseFeature:

    def test_known_keys(self):
        assert parse_feature("reportCards") is Feature.REPORT_CARDS
        assert parse_feature(Feature.HEALTH_RECORDS) is Feature.HEALTH_RECORDS

    @pytest.mark.parametrize("name", ["transportManagment", "ReportCards", "", "all"])
    def test_unknown_key_raises(self, name):
        with pytest.raises(UnknownFeatureError) as exc_info:
            parse_feature(name)

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {"feature": name}

    def test_flags_validated_together(self):
        with pytest.raises(UnknownFeatureError):
            parse_feature_flags({"onlineExams": True, "quantumLab": True})


class TestTenantCreation:
    """Tenant initialization with the default flag set."""

    def test_default_flags(self, tenant_registry: TenantFeatureRegistry):
        feature_set = tenant_registry.get_feature_set(TENANT_ID)

        for feature in Feature:
            assert feature_set.is_enabled(feature) is (feature not in DISABLED_BY_DEFAULT)
        assert feature_set.version == 0

    def test_defaults_from_settings(self):
        registry = TenantFeatureRegistry()

        assert registry.defaults[Feature.TRANSPORT_MANAGEMENT] is False
        assert registry.defaults[Feature.ATTENDANCE_MANAGEMENT] is True

    def test_overrides_applied(self):
        registry = TenantFeatureRegistry(default_disabled=[])

        feature_set = registry.create_tenant("hillside", {"feeManagement": False})

        assert feature_set.is_enabled(Feature.FEE_MANAGEMENT) is False
        assert feature_set.is_enabled(Feature.HEALTH_RECORDS) is True

    def test_unknown_override_rejected(self):
        registry = TenantFeatureRegistry(default_disabled=[])

        with pytest.raises(UnknownFeatureError):
            registry.create_tenant("hillside", {"quantumLab": True})
        assert registry.has_tenant("hillside") is False

    def test_unknown_default_rejected(self):
        with pytest.raises(UnknownFeatureError):
            TenantFeatureRegistry(default_disabled=["swimmingPool"])

    def test_duplicate_tenant(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(TenantAlreadyExistsError) as exc_info:
            tenant_registry.create_tenant(TENANT_ID)

        assert exc_info.value.status_code == 409

    def test_tenant_ids(self, tenant_registry: TenantFeatureRegistry):
        assert tenant_registry.tenant_ids() == [TENANT_ID, OTHER_TENANT_ID]

    def test_missing_tenant(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(TenantNotFoundError):
            tenant_registry.get_feature_set("nowhere")


class TestFeatureReads:

    def test_is_feature_enabled(self, tenant_registry: TenantFeatureRegistry):
        assert tenant_registry.is_feature_enabled(TENANT_ID, "onlineExams") is True
        assert tenant_registry.is_feature_enabled(TENANT_ID, Feature.HOSTEL_MANAGEMENT) is False

    def test_unknown_key_reads_disabled(self, tenant_registry: TenantFeatureRegistry):
        assert tenant_registry.is_feature_enabled(TENANT_ID, "quantumLab") is False

    def test_unregistered_tenant_reads_disabled(self, tenant_registry: TenantFeatureRegistry):
        reader = tenant_registry.reader("nowhere")

        assert all(reader.is_feature_enabled(feature.value) is False for feature in Feature)

    def test_unregistered_tenant_evaluator_still_allows_role_only_modules(
        self, tenant_registry: TenantFeatureRegistry
    ):
        evaluator = tenant_registry.evaluator_for("nowhere")

        assert evaluator.can_access_module(AuthTestData.ADMIN, Module.SETTINGS) is True
        assert evaluator.can_access_module(AuthTestData.PARENT, Module.BLOG) is True
        assert evaluator.can_access_module(AuthTestData.ADMIN, Module.FEES) is False


class TestToggleFeature:
    """Admin-only flag mutation."""

    def test_toggle_flips_state(self, tenant_registry: TenantFeatureRegistry):
        # Act
        updated = tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, "transportManagement")

        # Assert
        assert updated.is_enabled(Feature.TRANSPORT_MANAGEMENT) is True
        assert updated.version == 1
        assert tenant_registry.get_feature_set(TENANT_ID) is updated

    def test_toggle_twice_restores(self, tenant_registry: TenantFeatureRegistry):
        tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, Feature.LIBRARY_MANAGEMENT)
        updated = tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, Feature.LIBRARY_MANAGEMENT)

        assert updated.is_enabled(Feature.LIBRARY_MANAGEMENT) is True
        assert updated.version == 2

    def test_explicit_value(self, tenant_registry: TenantFeatureRegistry):
        first = tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, "onlineExams", enabled=True)
        second = tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, "onlineExams", enabled=False)

        assert first.is_enabled(Feature.ONLINE_EXAMS) is True
        assert second.is_enabled(Feature.ONLINE_EXAMS) is False

    def test_previous_snapshot_is_unchanged(self, tenant_registry: TenantFeatureRegistry):
        before = tenant_registry.get_feature_set(TENANT_ID)

        tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, Feature.FEE_MANAGEMENT)

        assert before.is_enabled(Feature.FEE_MANAGEMENT) is True
        assert before.version == 0

    def test_other_tenants_unaffected(self, tenant_registry: TenantFeatureRegistry):
        tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, Feature.FEE_MANAGEMENT)

        assert tenant_registry.is_feature_enabled(OTHER_TENANT_ID, Feature.FEE_MANAGEMENT) is True

    def test_unknown_key_is_an_error(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(UnknownFeatureError):
            tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, "transportManagment")

        assert tenant_registry.get_feature_set(TENANT_ID).version == 0

    @pytest.mark.parametrize("actor", [
        AuthTestData.TEACHER,
        AuthTestData.STUDENT,
        AuthTestData.PARENT,
        AuthTestData.OTHER_TENANT_ADMIN,
        None,
    ])
    def test_only_tenant_admin_may_toggle(self, tenant_registry: TenantFeatureRegistry, actor):
        with pytest.raises(AuthorizationError) as exc_info:
            tenant_registry.toggle_feature(actor, TENANT_ID, Feature.FEE_MANAGEMENT)

        assert exc_info.value.status_code == 403
        assert tenant_registry.is_feature_enabled(TENANT_ID, Feature.FEE_MANAGEMENT) is True

    def test_missing_tenant(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(TenantNotFoundError):
            tenant_registry.toggle_feature(AuthTestData.ADMIN, "nowhere", Feature.FEE_MANAGEMENT)

    def test_evaluator_sees_toggle_immediately(self, tenant_registry: TenantFeatureRegistry):
        # Arrange
        evaluator = tenant_registry.evaluator_for(TENANT_ID)
        assert evaluator.can_access_module(AuthTestData.TEACHER, Module.ATTENDANCE) is True

        # Act
        tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, Feature.ATTENDANCE_MANAGEMENT)

        # Assert
        assert evaluator.can_access_module(AuthTestData.TEACHER, Module.ATTENDANCE) is False
        assert evaluator.has_permission(AuthTestData.ADMIN, Feature.ATTENDANCE_MANAGEMENT) is False


class TestBulkUpdate:

    def test_update_several(self, tenant_registry: TenantFeatureRegistry):
        updated = tenant_registry.update_features(
            AuthTestData.ADMIN,
            TENANT_ID,
            {"hostelManagement": True, "eventManagement": False},
        )

        assert updated.is_enabled(Feature.HOSTEL_MANAGEMENT) is True
        assert updated.is_enabled(Feature.EVENT_MANAGEMENT) is False
        assert updated.version == 1

    def test_unknown_key_applies_nothing(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(UnknownFeatureError):
            tenant_registry.update_features(
                AuthTestData.ADMIN,
                TENANT_ID,
                {"hostelManagement": True, "quantumLab": True},
            )

        feature_set = tenant_registry.get_feature_set(TENANT_ID)
        assert feature_set.is_enabled(Feature.HOSTEL_MANAGEMENT) is False
        assert feature_set.version == 0

    def test_non_admin_rejected(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(AuthorizationError):
            tenant_registry.update_features(AuthTestData.TEACHER, TENANT_ID, {"reportCards": False})


class TestFeatureConfig:

    def test_set_and_get(self, tenant_registry: TenantFeatureRegistry):
        tenant_registry.set_feature_config(
            AuthTestData.ADMIN, TENANT_ID, "feeManagement", {"currency": "KES", "late_fee": 5}
        )

        assert tenant_registry.get_feature_config(TENANT_ID, Feature.FEE_MANAGEMENT) == {
            "currency": "KES",
            "late_fee": 5,
        }

    def test_config_survives_toggle(self, tenant_registry: TenantFeatureRegistry):
        tenant_registry.set_feature_config(AuthTestData.ADMIN, TENANT_ID, "onlineExams", {"proctored": True})

        tenant_registry.toggle_feature(AuthTestData.ADMIN, TENANT_ID, "onlineExams")

        assert tenant_registry.get_feature_config(TENANT_ID, "onlineExams") == {"proctored": True}

    def test_empty_by_default(self, tenant_registry: TenantFeatureRegistry):
        assert tenant_registry.get_feature_config(TENANT_ID, "reportCards") == {}

    def test_unknown_feature(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(UnknownFeatureError):
            tenant_registry.get_feature_config(TENANT_ID, "quantumLab")

    def test_non_admin_rejected(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(AuthorizationError):
            tenant_registry.set_feature_config(AuthTestData.PARENT, TENANT_ID, "reportCards", {"term": 2})


class TestResetToDefaults:

    def test_reset(self, tenant_registry: TenantFeatureRegistry):
        # Arrange
        tenant_registry.update_features(
            AuthTestData.ADMIN, TENANT_ID, {"healthRecords": True, "studentPortal": False}
        )
        tenant_registry.set_feature_config(AuthTestData.ADMIN, TENANT_ID, "healthRecords", {"nurse": "on-call"})

        # Act
        reset = tenant_registry.reset_to_defaults(AuthTestData.ADMIN, TENANT_ID)

        # Assert
        assert reset.as_flags() == tenant_registry.defaults
        assert reset.config_for(Feature.HEALTH_RECORDS) == {}
        assert reset.version == 3

    def test_non_admin_rejected(self, tenant_registry: TenantFeatureRegistry):
        with pytest.raises(AuthorizationError):
            tenant_registry.reset_to_defaults(AuthTestData.STUDENT, TENANT_ID)


class TestTenantFeatureSet:
    """Snapshot model behavior."""

    def test_build_fills_whole_vocabulary(self):
        feature_set = TenantFeatureSet.build("t", {Feature.REPORT_CARDS: True})

        assert set(feature_set.features) == set(Feature)
        assert feature_set.enabled_features() == [Feature.REPORT_CARDS]

    def test_snapshot_is_frozen(self):
        feature_set = TenantFeatureSet.build("t", {})

        with pytest.raises(Exception):
            feature_set.version = 10
