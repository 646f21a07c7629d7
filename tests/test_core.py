"""
Tests for configuration, exceptions and logging helpers.
"""
import pytest

from campusgate.core import exceptions
from campusgate.core.config import Settings
from campusgate.core.logging import log_request_details
from campusgate.services.tenant.features import TenantFeatureRegistry


class TestSettings:
    """Environment parsing."""

    def test_comma_separated_lists(self, monkeypatch: pytest.MonkeyPatch):
        # Arrange
        monkeypatch.setenv("DEFAULT_DISABLED_FEATURES", "transportManagement, hostelManagement")
        monkeypatch.setenv("BOOTSTRAP_TENANT_IDS", "greenfield-academy,riverside-high")
        monkeypatch.setenv("BACKEND_CORS_ORIGINS", "https://greenfield-academy.org")

        # Act
        config = Settings()

        # Assert
        assert config.DEFAULT_DISABLED_FEATURES == ["transportManagement", "hostelManagement"]
        assert config.BOOTSTRAP_TENANT_IDS == ["greenfield-academy", "riverside-high"]
        assert config.BACKEND_CORS_ORIGINS == ["https://greenfield-academy.org"]

    def test_json_lists(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BOOTSTRAP_TENANT_IDS", '["greenfield-academy", "riverside-high"]')

        assert Settings().BOOTSTRAP_TENANT_IDS == ["greenfield-academy", "riverside-high"]

    def test_empty_list(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DEFAULT_DISABLED_FEATURES", "")

        assert Settings().DEFAULT_DISABLED_FEATURES == []

    def test_registry_uses_env_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DEFAULT_DISABLED_FEATURES", "feeManagement,libraryManagement")
        config = Settings()

        registry = TenantFeatureRegistry(default_disabled=config.DEFAULT_DISABLED_FEATURES)
        feature_set = registry.create_tenant("greenfield-academy")

        assert feature_set.is_enabled("feeManagement") is False
        assert feature_set.is_enabled("transportManagement") is True


class TestExceptions:

    def test_every_error_carries_its_status(self):
        assert exceptions.AuthenticationError().status_code == 401
        assert exceptions.AuthorizationError().status_code == 403
        assert exceptions.UnknownFeatureError("quantumLab").status_code == 404
        assert exceptions.TenantNotFoundError("nowhere").status_code == 404
        assert exceptions.TenantAlreadyExistsError("greenfield-academy").status_code == 409

    def test_no_unused_error_types(self):
        assert {cls.__name__ for cls in exceptions.CampusGateException.__subclasses__()} == {
            "AuthenticationError",
            "AuthorizationError",
            "UnknownFeatureError",
            "TenantNotFoundError",
            "TenantAlreadyExistsError",
        }


class TestLogRequestDetails:

    def test_context(self):
        context = log_request_details(
            request_id="req-1", method="GET", path="/dashboard", client_ip="10.0.0.7"
        )

        assert context == {
            "request_id": "req-1",
            "method": "GET",
            "path": "/dashboard",
            "client_ip": "10.0.0.7",
        }

    def test_client_ip_optional(self):
        context = log_request_details(request_id="req-2", method="PUT", path="/api/v1/health")

        assert "client_ip" not in context
