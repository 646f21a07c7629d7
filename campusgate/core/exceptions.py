"""
Custom exceptions for the application.

Access decisions themselves never raise; these cover the collaborator
operations around them (tenant feature management, API authentication).
"""
from typing import Any, Dict, Optional


class CampusGateException(Exception):
    """Base exception for all CampusGate exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(CampusGateException):
    """Authentication error exception."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)


class AuthorizationError(CampusGateException):
    """Authorization error exception."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class UnknownFeatureError(CampusGateException):
    """Raised when a feature key is not part of the feature vocabulary."""

    def __init__(self, feature: str):
        super().__init__(
            f"Unknown feature: {feature}",
            status_code=404,
            details={"feature": feature},
        )
        self.feature = feature


class TenantNotFoundError(CampusGateException):
    """Tenant has no registered feature set."""

    def __init__(self, tenant_id: Any):
        super().__init__(
            f"Tenant with ID {tenant_id} not found",
            status_code=404,
            details={"tenant_id": str(tenant_id)},
        )


class TenantAlreadyExistsError(CampusGateException):
    """Tenant feature set was already initialized."""

    def __init__(self, tenant_id: Any):
        super().__init__(
            f"Tenant with ID {tenant_id} already exists",
            status_code=409,
            details={"tenant_id": str(tenant_id)},
        )
