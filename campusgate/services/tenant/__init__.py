"""
Tenant services for CampusGate.
"""

from .features import (
    TenantFeatureReader,
    TenantFeatureRegistry,
    parse_feature,
    parse_feature_flags,
)

__all__ = [
    "TenantFeatureRegistry",
    "TenantFeatureReader",
    "parse_feature",
    "parse_feature_flags",
]
